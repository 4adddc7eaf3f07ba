"""AI service constants and prompts.

Centralized configuration for answer generation including
system prompts and model parameters.
"""

# OpenAI API parameters
AI_MAX_TOKENS = 1000
AI_TEMPERATURE = 0.3

# Returned when the model produces an empty completion
NO_ANSWER_MESSAGE = "No answer generated."

# System prompt when only retrieved context is available
RETRIEVAL_SYSTEM_PROMPT = """You are a helpful assistant for {company_name}.

Use the following context to answer questions. If the context doesn't contain enough
information to fully answer the question, provide the best answer you can based on
what's available.

Context:
{context}

Answer questions about the company based on this context. Be helpful and accurate."""

# System prompt when the whole knowledge base is included
FULL_CONTEXT_SYSTEM_PROMPT = """You are a helpful assistant for {company_name}.
You have access to the following information about the company:

{context}

Answer questions about the company based on this information. Be helpful and accurate."""

# Keyed by context builder name
SYSTEM_PROMPT_TEMPLATES = {
    "keyword": RETRIEVAL_SYSTEM_PROMPT,
    "full": FULL_CONTEXT_SYSTEM_PROMPT,
}
