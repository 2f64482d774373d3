"""Tests for LiteLLMTransport."""

import asyncio
import os
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from promptweave.config import LLMSettings
from promptweave.exceptions import RequestCancelledError, RequestError
from promptweave.llm.transport import ChatMessage, ChatRequest


class RateLimitError(Exception):
    """Provider error carrying an HTTP status, like litellm's exceptions."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.status_code = 429
        self.llm_provider = "openai"
        self.code = "rate_limit_exceeded"


def make_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.fixture
def mock_litellm_module():
    """Mock the litellm module."""
    mock_litellm = MagicMock()
    mock_litellm.acompletion = AsyncMock(return_value=make_response("Hi there"))

    with patch.dict(sys.modules, {"litellm": mock_litellm}):
        yield mock_litellm


@pytest.fixture
def request_() -> ChatRequest:
    return ChatRequest(
        model="gpt-4",
        temperature=0.2,
        max_tokens=800,
        messages=[
            ChatMessage(role="system", content="You are helpful."),
            ChatMessage(role="user", content="Hello"),
        ],
    )


class TestLiteLLMTransportInit:
    def test_defaults(self, mock_litellm_module):
        from promptweave.llm.litellm import LiteLLMTransport

        transport = LiteLLMTransport()

        assert transport.api_base is None
        assert transport.timeout == 120.0

    def test_from_settings(self, mock_litellm_module):
        from promptweave.llm.litellm import LiteLLMTransport

        settings = LLMSettings(api_base="https://openrouter.ai/api/v1", timeout=30)

        transport = LiteLLMTransport.from_settings(settings)

        assert transport.api_base == "https://openrouter.ai/api/v1"
        assert transport.timeout == 30

    def test_api_keys_set_missing_env(self, mock_litellm_module):
        from promptweave.llm.litellm import LiteLLMTransport

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "existing"}, clear=True):
            LiteLLMTransport(
                api_keys={"OPENAI_API_KEY": "sk-test", "ANTHROPIC_API_KEY": "ignored"}
            )

            assert os.environ["OPENAI_API_KEY"] == "sk-test"
            assert os.environ["ANTHROPIC_API_KEY"] == "existing"


class TestLiteLLMTransportComplete:
    @pytest.mark.asyncio
    async def test_returns_content(self, mock_litellm_module, request_):
        from promptweave.llm.litellm import LiteLLMTransport

        text = await LiteLLMTransport().complete(request_)

        assert text == "Hi there"
        kwargs = mock_litellm_module.acompletion.call_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 800
        assert kwargs["messages"] == [
            {"role": "system", "content": "You are helpful."},
            {"role": "user", "content": "Hello"},
        ]
        assert "api_base" not in kwargs

    @pytest.mark.asyncio
    async def test_passes_api_base(self, mock_litellm_module, request_):
        from promptweave.llm.litellm import LiteLLMTransport

        await LiteLLMTransport(api_base="http://localhost:4000").complete(request_)

        assert mock_litellm_module.acompletion.call_args.kwargs["api_base"] == "http://localhost:4000"

    @pytest.mark.asyncio
    async def test_empty_content(self, mock_litellm_module, request_):
        from promptweave.llm.litellm import LiteLLMTransport

        mock_litellm_module.acompletion.return_value = make_response(None)

        assert await LiteLLMTransport().complete(request_) == ""

    @pytest.mark.asyncio
    async def test_status_error_becomes_request_error(self, mock_litellm_module, request_):
        from promptweave.llm.litellm import LiteLLMTransport

        mock_litellm_module.acompletion.side_effect = RateLimitError("Slow down")

        with pytest.raises(RequestError) as exc_info:
            await LiteLLMTransport().complete(request_)

        error = exc_info.value
        assert error.status == 429
        assert error.status_text == "RateLimitError"
        assert error.body.message == "Slow down"
        assert error.body.type == "openai"
        assert error.body.code == "rate_limit_exceeded"

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, mock_litellm_module, request_):
        from promptweave.llm.litellm import LiteLLMTransport

        mock_litellm_module.acompletion.side_effect = RuntimeError("connection reset")

        with pytest.raises(RuntimeError, match="connection reset"):
            await LiteLLMTransport().complete(request_)

    @pytest.mark.asyncio
    async def test_cancel_event_abandons_request(self, mock_litellm_module, request_):
        from promptweave.llm.litellm import LiteLLMTransport

        request_cancelled = False

        async def never_answers(**kwargs):
            nonlocal request_cancelled
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                request_cancelled = True
                raise

        mock_litellm_module.acompletion.side_effect = never_answers
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(RequestCancelledError):
            await LiteLLMTransport().complete(request_, cancel_event=cancel_event)

        # the abandoned request has finished unwinding by the time complete() returns
        assert request_cancelled is True

    @pytest.mark.asyncio
    async def test_unset_cancel_event_returns_answer(self, mock_litellm_module, request_):
        from promptweave.llm.litellm import LiteLLMTransport

        text = await LiteLLMTransport().complete(request_, cancel_event=asyncio.Event())

        assert text == "Hi there"
