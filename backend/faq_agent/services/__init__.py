"""Services package."""

from faq_agent.services.faq_agent import (
    AnswerGenerationError,
    FAQAgent,
    FAQAgentError,
    InvalidQuestionError,
    create_faq_agent,
    run_faq_agent,
)

__all__ = [
    "AnswerGenerationError",
    "FAQAgent",
    "FAQAgentError",
    "InvalidQuestionError",
    "create_faq_agent",
    "run_faq_agent",
]
