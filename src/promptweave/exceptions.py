"""Exception types raised by promptweave."""

from __future__ import annotations

from dataclasses import dataclass


class PromptweaveError(Exception):
    """Base exception for promptweave errors."""

    pass


class ConfigError(PromptweaveError, ValueError):
    """Raised when a configuration file cannot be loaded or validated."""

    pass


class TemplateNotFoundError(PromptweaveError):
    """Raised when a template id cannot be resolved."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Prompt template not found: {template_id}")


class SystemTemplateNotFoundError(TemplateNotFoundError):
    """Raised when the canonical system template is missing from a project."""

    pass


class TransportError(PromptweaveError):
    """Base exception for chat-completion transport failures."""

    pass


@dataclass
class RequestErrorBody:
    """Error payload returned by the completion API."""

    message: str | None = None
    type: str | None = None
    code: str | None = None


class RequestError(TransportError):
    """Raised when the completion API answers with an error status."""

    def __init__(
        self,
        status: int | None,
        status_text: str = "",
        body: RequestErrorBody | None = None,
    ):
        self.status = status
        self.status_text = status_text
        self.body = body
        detail = f": {body.message}" if body and body.message else ""
        super().__init__(f"Request failed with status {status} {status_text}{detail}")


class RequestCancelledError(TransportError):
    """Raised when a completion request is cancelled by the caller."""

    def __init__(self) -> None:
        super().__init__("Request cancelled")
