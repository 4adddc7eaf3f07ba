"""FAQ answering service.

Builds context for a question, fills the system prompt and asks the
OpenAI chat model for an answer.
"""

import logging
import time
from functools import lru_cache
from typing import TYPE_CHECKING

from openai import AsyncOpenAI, OpenAIError

from faq_agent.core.ai_constants import (
    AI_MAX_TOKENS,
    AI_TEMPERATURE,
    NO_ANSWER_MESSAGE,
    RETRIEVAL_SYSTEM_PROMPT,
    SYSTEM_PROMPT_TEMPLATES,
)
from faq_agent.knowledge.cache import KnowledgeCache, get_knowledge_cache
from faq_agent.knowledge.context import ContextBuilder, get_context_builder
from faq_agent.observability import MetricsBackend, get_metrics_backend

if TYPE_CHECKING:
    from faq_agent.core.config import Settings

logger = logging.getLogger(__name__)


class FAQAgentError(Exception):
    """Base exception for FAQ agent errors."""

    pass


class InvalidQuestionError(FAQAgentError):
    """The question is empty or whitespace only."""

    pass


class AnswerGenerationError(FAQAgentError):
    """The language model call failed."""

    pass


class FAQAgent:
    """Answers company questions with a context builder and an OpenAI model."""

    def __init__(
        self,
        context_builder: ContextBuilder,
        cache: KnowledgeCache,
        client: AsyncOpenAI | None = None,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        metrics: MetricsBackend | None = None,
    ) -> None:
        """Initialize the agent.

        Args:
            context_builder: Strategy that turns a question into context.
            cache: Knowledge cache providing the company name.
            client: OpenAI client. Created on first use when omitted.
            model: Chat model name.
            api_key: API key for a lazily created client.
            metrics: Metrics backend (defaults to the global backend).
        """
        self.context_builder = context_builder
        self.cache = cache
        self.model = model
        self._client = client
        self._api_key = api_key
        self._metrics = metrics

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key) if self._api_key else AsyncOpenAI()
        return self._client

    def build_system_prompt(self, question: str) -> str:
        """Build the system prompt with the context for a question.

        Raises:
            DataUnavailableError: If the knowledge base cannot be loaded.
        """
        context = self.context_builder.build_context(question)
        kb = self.cache.get_knowledge_base()
        template = SYSTEM_PROMPT_TEMPLATES.get(
            self.context_builder.name, RETRIEVAL_SYSTEM_PROMPT
        )
        return template.format(company_name=kb.company_name, context=context)

    async def answer(self, question: str) -> str:
        """Answer a question about the company.

        Args:
            question: User question.

        Returns:
            The model's answer text.

        Raises:
            InvalidQuestionError: If the question is empty.
            DataUnavailableError: If the knowledge base cannot be loaded.
            AnswerGenerationError: If the OpenAI API call fails.
        """
        question = question.strip()
        if not question:
            raise InvalidQuestionError("Please provide a valid question")

        messages = [
            {"role": "system", "content": self.build_system_prompt(question)},
            {"role": "user", "content": question},
        ]

        metrics = self._metrics or get_metrics_backend()

        start_time = time.perf_counter()
        status_code = 500
        try:
            # Client construction fails with OpenAIError when no key is configured
            client = self._get_client()
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=AI_MAX_TOKENS,
                temperature=AI_TEMPERATURE,
            )
            status_code = 200
        except OpenAIError as e:
            status_code = getattr(e, "status_code", None) or 500
            raise AnswerGenerationError(f"AI service error: {e}") from e
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            metrics.observe_external_api("openai", "chat.completions", status_code, duration_ms)
            logger.info(
                "OpenAI API chat.completions status=%s duration_ms=%.2f builder=%s",
                status_code,
                duration_ms,
                self.context_builder.name,
            )

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            return NO_ANSWER_MESSAGE
        return content.strip()


def create_faq_agent(settings: "Settings | None" = None) -> FAQAgent:
    """Create an agent wired from settings and the global knowledge cache."""
    if settings is None:
        from faq_agent.core.config import get_settings

        settings = get_settings()

    cache = get_knowledge_cache()
    return FAQAgent(
        context_builder=get_context_builder(settings.context_builder, cache, settings),
        cache=cache,
        model=settings.openai_model,
        api_key=settings.openai_api_key,
    )


@lru_cache
def get_faq_agent() -> FAQAgent:
    """Get the process-wide FAQ agent."""
    return create_faq_agent()


async def run_faq_agent(question: str) -> str:
    """Answer a question with the process-wide FAQ agent."""
    return await get_faq_agent().answer(question)
