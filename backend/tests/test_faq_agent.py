"""Tests for the FAQ answering service."""

from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from faq_agent.core.ai_constants import AI_MAX_TOKENS, AI_TEMPERATURE, NO_ANSWER_MESSAGE
from faq_agent.core.config import Settings
from faq_agent.knowledge.cache import KnowledgeCache
from faq_agent.knowledge.context import FullContextBuilder, KeywordContextBuilder
from faq_agent.knowledge.loader import DataUnavailableError
from faq_agent.services.faq_agent import (
    AnswerGenerationError,
    FAQAgent,
    FAQAgentError,
    InvalidQuestionError,
    create_faq_agent,
    get_faq_agent,
    run_faq_agent,
)


def _completion(content):
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content=content))]
    return completion


@pytest.fixture
def agent(knowledge_cache: KnowledgeCache, mock_openai_client, metrics) -> FAQAgent:
    """Keyword agent over the Acme knowledge base with a mocked client."""
    return FAQAgent(
        context_builder=KeywordContextBuilder(knowledge_cache, metrics=metrics),
        cache=knowledge_cache,
        client=mock_openai_client,
        model="gpt-test",
        metrics=metrics,
    )


class TestBuildSystemPrompt:
    """Tests for system prompt construction."""

    def test_keyword_prompt_contains_context(self, agent: FAQAgent):
        """Test the retrieved documents and company name fill the template."""
        prompt = agent.build_system_prompt("What does Ana do?")

        assert prompt.startswith("You are a helpful assistant for Acme.")
        assert "[employee]\nEmployee: Ana\nRole: Engineer\nArea: Infrastructure" in prompt
        assert "Leo" not in prompt

    def test_full_prompt_contains_knowledge_base(self, knowledge_cache: KnowledgeCache):
        """Test the full builder uses the full-context template."""
        agent = FAQAgent(FullContextBuilder(knowledge_cache), knowledge_cache, client=MagicMock())

        prompt = agent.build_system_prompt("What does Ana do?")

        assert "You have access to the following information about the company" in prompt
        assert "- Leo, Designer (User interfaces)" in prompt


class TestAnswer:
    """Tests for FAQAgent.answer."""

    async def test_answer_success(self, agent: FAQAgent, mock_openai_client):
        """Test a question is answered with the retrieved context."""
        answer = await agent.answer("What does Ana do?")

        assert answer == "Ana is an engineer at Acme."
        mock_openai_client.chat.completions.create.assert_awaited_once()
        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_tokens"] == AI_MAX_TOKENS
        assert kwargs["temperature"] == AI_TEMPERATURE
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "Employee: Ana" in system["content"]
        assert user == {"role": "user", "content": "What does Ana do?"}

    async def test_question_is_stripped(self, agent: FAQAgent, mock_openai_client):
        """Test surrounding whitespace is removed before sending."""
        await agent.answer("   What does Ana do?  \n")

        messages = mock_openai_client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[1]["content"] == "What does Ana do?"

    async def test_answer_is_stripped(self, agent: FAQAgent, mock_openai_client):
        """Test whitespace around the model output is removed."""
        mock_openai_client.chat.completions.create.return_value = _completion("  Hello.\n")

        assert await agent.answer("hello") == "Hello."

    @pytest.mark.parametrize("question", ["", "   ", "\n\t"])
    async def test_empty_question_rejected(self, agent: FAQAgent, mock_openai_client, question: str):
        """Test empty questions fail before any model call."""
        with pytest.raises(InvalidQuestionError, match="valid question"):
            await agent.answer(question)

        mock_openai_client.chat.completions.create.assert_not_called()

    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_completion(self, agent: FAQAgent, mock_openai_client, content):
        """Test an empty model reply yields the placeholder answer."""
        mock_openai_client.chat.completions.create.return_value = _completion(content)

        assert await agent.answer("What does Ana do?") == NO_ANSWER_MESSAGE

    async def test_no_choices(self, agent: FAQAgent, mock_openai_client):
        """Test a completion without choices yields the placeholder answer."""
        completion = MagicMock()
        completion.choices = []
        mock_openai_client.chat.completions.create.return_value = completion

        assert await agent.answer("What does Ana do?") == NO_ANSWER_MESSAGE

    async def test_openai_error_wrapped(self, agent: FAQAgent, mock_openai_client):
        """Test OpenAI failures surface as AnswerGenerationError."""
        error = OpenAIError("boom")
        mock_openai_client.chat.completions.create.side_effect = error

        with pytest.raises(AnswerGenerationError, match="AI service error: boom") as exc_info:
            await agent.answer("What does Ana do?")

        assert exc_info.value.__cause__ is error
        assert isinstance(exc_info.value, FAQAgentError)

    async def test_missing_api_key_wrapped(self, knowledge_cache: KnowledgeCache, metrics):
        """Test a client that cannot be created surfaces as AnswerGenerationError."""
        agent = FAQAgent(
            KeywordContextBuilder(knowledge_cache, metrics=metrics),
            knowledge_cache,
            metrics=metrics,
        )

        with pytest.raises(AnswerGenerationError, match="AI service error") as exc_info:
            await agent.answer("What does Ana do?")

        assert isinstance(exc_info.value.__cause__, OpenAIError)
        assert (
            'external_api_requests_total{provider="openai",operation="chat.completions",status="500"} 1'
            in metrics.render_prometheus()
        )

    async def test_data_unavailable_propagates(self, mock_openai_client, metrics):
        """Test a broken knowledge base fails before the model call."""
        cache = KnowledgeCache(loader=MagicMock(side_effect=DataUnavailableError("gone")))
        agent = FAQAgent(
            KeywordContextBuilder(cache, metrics=metrics),
            cache,
            client=mock_openai_client,
            metrics=metrics,
        )

        with pytest.raises(DataUnavailableError):
            await agent.answer("What does Ana do?")

        mock_openai_client.chat.completions.create.assert_not_called()

    async def test_metrics_recorded(self, agent: FAQAgent, metrics):
        """Test the model call and retrieval are observed."""
        await agent.answer("What does Ana do?")

        rendered = metrics.render_prometheus()
        assert (
            'external_api_requests_total{provider="openai",operation="chat.completions",status="200"} 1'
            in rendered
        )
        assert 'context_retrievals_total{builder="keyword",outcome="matched"} 1' in rendered

    async def test_failure_metrics_recorded(self, agent: FAQAgent, mock_openai_client, metrics):
        """Test failed model calls are observed with an error status."""
        mock_openai_client.chat.completions.create.side_effect = OpenAIError("boom")

        with pytest.raises(AnswerGenerationError):
            await agent.answer("What does Ana do?")

        assert 'status="500"} 1' in metrics.render_prometheus()


class TestFactory:
    """Tests for building the agent from settings."""

    def test_create_from_settings(self, faq_file, monkeypatch):
        """Test the agent follows configured builder and model."""
        monkeypatch.setenv("KNOWLEDGE_BASE_PATH", str(faq_file))
        settings = Settings(context_builder="full", openai_model="gpt-x", openai_api_key="sk-test")

        agent = create_faq_agent(settings)

        assert agent.model == "gpt-x"
        assert agent.context_builder.name == "full"
        assert "Acme" in agent.build_system_prompt("anything")

    def test_create_rejects_unknown_builder(self):
        """Test an unsupported builder fails at construction."""
        with pytest.raises(ValueError):
            create_faq_agent(Settings(context_builder="vector"))

    def test_open_api_key_alias(self, monkeypatch):
        """Test the legacy OPEN_API_KEY variable is accepted."""
        monkeypatch.setenv("OPEN_API_KEY", "sk-legacy")

        assert Settings().openai_api_key == "sk-legacy"

    async def test_run_faq_agent(self, mock_openai_client, monkeypatch):
        """Test the module-level entry point uses the process-wide agent."""
        get_faq_agent.cache_clear()
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        try:
            with patch(
                "faq_agent.services.faq_agent.AsyncOpenAI", return_value=mock_openai_client
            ) as client_cls:
                answer = await run_faq_agent("Tell me about Jonas Weber")

            assert answer == "Ana is an engineer at Acme."
            client_cls.assert_called_once_with(api_key="sk-test")
            system = mock_openai_client.chat.completions.create.call_args.kwargs["messages"][0]
            assert "The Tribe" in system["content"]
        finally:
            get_faq_agent.cache_clear()
