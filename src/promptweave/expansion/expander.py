"""
Template script evaluation.

Template bodies are Jinja2 rendered in a sandbox with async support.
Scripts see the variable table as ``env`` and two helpers:

- ``text(body)`` emits a prompt segment before the rendered body
- ``log(*args)`` writes a line to the console log shown in the trace

Undefined ``env`` lookups and script exceptions never escape: they are
reported in the returned ExpansionResult.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from jinja2 import TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment

from promptweave.constants import ERROR_MARKER
from promptweave.models import Template

logger = logging.getLogger(__name__)

# Filename Jinja2 assigns to templates compiled from strings
_TEMPLATE_FILENAME = "<template>"


@dataclass(frozen=True)
class Found:
    value: Any


@dataclass(frozen=True)
class NotFound:
    name: str


Lookup = Found | NotFound


@dataclass(frozen=True)
class Ok:
    text: str


@dataclass(frozen=True)
class Err:
    message: str


Outcome = Ok | Err


@dataclass
class ExpansionResult:
    """Output of one template evaluation."""

    text: str
    errors: str
    success: bool
    logs: str


class VariableEnv:
    """Read-only view of the variable table exposed to scripts as ``env``.

    Missing names resolve to an empty string and are reported through
    ``on_missing``. A variable named ``lookup`` is reached as ``env["lookup"]``.
    """

    def __init__(self, variables: dict[str, Any], on_missing: Callable[[str], None]):
        self._variables = variables
        self._on_missing = on_missing

    def lookup(self, name: str) -> Lookup:
        """Found(value) for bound names, NotFound(name) for missing or None."""
        if name in self._variables and self._variables[name] is not None:
            return Found(self._variables[name])
        return NotFound(name)

    def _resolve(self, name: str) -> Any:
        result = self.lookup(name)
        if isinstance(result, Found):
            return result.value
        self._on_missing(result.name)
        return ""

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._resolve(name)

    def __getitem__(self, name: str) -> Any:
        return self._resolve(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and isinstance(self.lookup(name), Found)

    def __repr__(self) -> str:
        return f"VariableEnv({sorted(self._variables)})"


def _make_environment() -> SandboxedEnvironment:
    return SandboxedEnvironment(  # nosec B701 - generating raw text prompts, not HTML
        autoescape=False,
        enable_async=True,
        keep_trailing_newline=True,
    )


def collect_segments(segments: list[str], marker: str) -> Outcome:
    """
    Fold emitted segments into the prompt text.

    Each segment is stripped of surrounding blank lines and followed by a
    blank line. A segment containing the error marker turns the whole
    outcome into Err with the rest of the marker's line as message.
    """
    text = ""
    for body in segments:
        idx = body.find(marker) if marker else -1
        if idx >= 0:
            message = body[idx + len(marker) :].split("\n", 1)[0].strip()
            return Err(message)
        trimmed = body.strip("\n")
        if trimmed:
            text += trimmed + "\n\n"
    return Ok(text)


def _locate(exc: BaseException) -> str:
    lineno: int | None = None
    if isinstance(exc, TemplateSyntaxError):
        lineno = exc.lineno
    else:
        tb = exc.__traceback__
        while tb is not None:
            if tb.tb_frame.f_code.co_filename == _TEMPLATE_FILENAME:
                lineno = tb.tb_lineno
            tb = tb.tb_next
    return f" at prompt line {lineno}" if lineno else ""


async def expand(template: Template, variables: dict[str, Any]) -> ExpansionResult:
    """
    Evaluate a template against a variable table.

    Args:
        template: Template whose source is rendered
        variables: Variable table built for the run

    Returns:
        ExpansionResult; success is False when the script raised or
        emitted the error marker
    """
    errors: list[str] = []
    logs: list[str] = []
    segments: list[str] = []

    def on_missing(name: str) -> None:
        errors.append(f"-  `env.{name}` not defined\n")

    def emit_text(body: Any) -> str:
        segments.append(str(body))
        return ""

    def emit_log(*args: Any) -> str:
        logs.append(" ".join(str(a) for a in args) + "\n")
        return ""

    env = VariableEnv(variables, on_missing)
    marker = variables.get("error") or ERROR_MARKER

    try:
        compiled = _make_environment().from_string(template.source)
        rendered = await compiled.render_async(env=env, text=emit_text, log=emit_log)
    except Exception as e:
        logger.debug(f"Template {template.id} raised {type(e).__name__}: {e}")
        errors.append(f"-  {type(e).__name__}: {e}{_locate(e)}\n")
        partial = collect_segments(segments, marker)
        return ExpansionResult(
            text=partial.text if isinstance(partial, Ok) else "",
            errors="".join(errors),
            success=False,
            logs="".join(logs),
        )

    segments.append(rendered)
    outcome = collect_segments(segments, marker)
    if isinstance(outcome, Err):
        logger.debug(f"Template {template.id} emitted error marker: {outcome.message}")
        errors.append(f"-  ScriptError: {outcome.message}\n")
        return ExpansionResult(text="", errors="".join(errors), success=False, logs="".join(logs))

    if errors:
        logger.debug(f"Template {template.id} expanded with {len(errors)} binding errors")
    return ExpansionResult(text=outcome.text, errors="".join(errors), success=True, logs="".join(logs))
