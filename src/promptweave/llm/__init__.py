"""Chat-completion transport and the single-call invoker."""

from promptweave.llm.invoker import invoke_completion
from promptweave.llm.transport import ChatMessage, ChatRequest, ChatTransport

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatTransport",
    "invoke_completion",
]
