"""Evaluation suite for the FAQ agent.

Key Components:
- graders/: Code-based graders for retrieved context and answers
- test_rag.py: Retrieval quality over the bundled knowledge base
"""
