"""FAQ Agent: answers company questions from a static knowledge base."""

__version__ = "0.1.0"
