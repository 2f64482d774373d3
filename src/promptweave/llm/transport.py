"""Contract between the run pipeline and a chat-completion backend."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Literal, Protocol


@dataclass
class ChatMessage:
    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class ChatRequest:
    """One chat-completion request."""

    model: str
    temperature: float
    max_tokens: int
    messages: list[ChatMessage] = field(default_factory=list)


class ChatTransport(Protocol):
    """Sends a request and returns the completion text.

    Implementations raise RequestError for error responses and
    RequestCancelledError when ``cancel_event`` is set before the answer
    arrives. Retries, if any, are the transport's business.
    """

    async def complete(
        self,
        request: ChatRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> str: ...
