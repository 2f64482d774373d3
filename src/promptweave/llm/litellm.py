"""
LiteLLM implementation of ChatTransport.

Provides access to 100+ LLM providers through LiteLLM's OpenAI-compatible
completion API. Provider errors that carry an HTTP status are mapped to
RequestError so the run trace can show status, type and code.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from promptweave.config import LLMSettings
from promptweave.exceptions import (
    RequestCancelledError,
    RequestError,
    RequestErrorBody,
    TransportError,
)
from promptweave.llm.transport import ChatRequest

logger = logging.getLogger(__name__)


def _to_request_error(error: Exception) -> RequestError | None:
    status = getattr(error, "status_code", None)
    if status is None:
        return None
    body = RequestErrorBody(
        message=getattr(error, "message", None) or str(error),
        type=getattr(error, "type", None) or getattr(error, "llm_provider", None),
        code=getattr(error, "code", None),
    )
    return RequestError(status=status, status_text=type(error).__name__, body=body)


async def _race_cancel(request: Any, cancel_event: asyncio.Event) -> Any:
    """Await ``request`` unless ``cancel_event`` is set first."""
    request_task = asyncio.ensure_future(request)
    cancel_task = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in (request_task, cancel_task):
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    if request_task in done:
        return request_task.result()
    raise RequestCancelledError()


class LiteLLMTransport:
    """
    ChatTransport backed by ``litellm.acompletion``.

    Example:
        >>> transport = LiteLLMTransport(api_keys={"OPENAI_API_KEY": "sk-..."})
        >>> text = await transport.complete(ChatRequest(model="gpt-4", ...))
    """

    def __init__(
        self,
        api_base: str | None = None,
        api_keys: dict[str, str] | None = None,
        timeout: float = 120.0,
    ):
        """
        Initialize LiteLLMTransport.

        Args:
            api_base: Optional custom API base URL (e.g., OpenRouter endpoint).
            api_keys: Optional dict of API keys to set in environment.
                     Keys should be like "OPENAI_API_KEY", "ANTHROPIC_API_KEY", etc.
            timeout: Request timeout in seconds.
        """
        self.api_base = api_base
        self.timeout = timeout
        self._litellm: Any = None

        try:
            import litellm

            self._litellm = litellm
        except ImportError as e:
            raise ImportError(
                "litellm package not found. Please install with `pip install litellm`."
            ) from e

        if api_keys:
            for key, value in api_keys.items():
                if value and key not in os.environ:
                    os.environ[key] = value
                    logger.debug(f"Set {key} from config")

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> LiteLLMTransport:
        return cls(
            api_base=settings.api_base,
            api_keys=settings.api_keys,
            timeout=settings.timeout,
        )

    async def complete(
        self,
        request: ChatRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """
        Send one completion request.

        Args:
            request: Model, sampling parameters and messages
            cancel_event: Optional event; setting it abandons the request

        Returns:
            The completion text

        Raises:
            RequestError: If the provider answered with an error status
            RequestCancelledError: If cancel_event was set first
        """
        completion_kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "timeout": self.timeout,
        }
        if self.api_base:
            completion_kwargs["api_base"] = self.api_base

        logger.debug(f"Calling LiteLLM model={request.model} max_tokens={request.max_tokens}")
        try:
            call = self._litellm.acompletion(**completion_kwargs)
            if cancel_event is None:
                response = await call
            else:
                response = await _race_cancel(call, cancel_event)
        except TransportError:
            raise
        except Exception as e:
            request_error = _to_request_error(e)
            if request_error is None:
                raise
            logger.error(f"LiteLLM API error: {request_error}")
            raise request_error from e

        content = response.choices[0].message.content
        return content or ""
