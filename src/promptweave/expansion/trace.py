"""
Markdown trace of a run.

The trace is an ordered list of sections rendered once on demand. Errors
are kept in their own slot so they appear on top, where they draw
attention, even though they are only fully known after expansion.
"""

from __future__ import annotations

import pprint
from typing import Any

from promptweave.exceptions import RequestError
from promptweave.models import Template
from promptweave.utils.markdown import fence_md, numbered_fence_md

# Longer strings are shown in their own fenced block
MAX_INLINE_VALUE_LENGTH = 40


def _first_names(variables: dict[str, Any]) -> dict[str, str]:
    names: dict[str, str] = {}
    for key, value in variables.items():
        if isinstance(value, str) and value not in names:
            names[value] = key
    return names


def _is_complex(key: str, value: Any, first_names: dict[str, str]) -> bool:
    if isinstance(value, str) and first_names[value] != key:
        return False
    return (
        not isinstance(value, str)
        or len(value) > MAX_INLINE_VALUE_LENGTH
        or "\n" in value.strip()
        or "`" in value
    )


def render_variables(variables: dict[str, Any]) -> str:
    """Render the variable table: scalars inline, everything else fenced."""
    first_names = _first_names(variables)
    info = "\n\n## Variables\n"
    info += "Variables are referenced through `env.NAME` in prompts.\n\n"

    for key, value in variables.items():
        if _is_complex(key, value, first_names):
            continue
        if isinstance(value, str) and first_names[value] != key:
            info += f"-   env.**{key}**: same as **{first_names[value]}**\n\n"
        else:
            info += f"-   env.**{key}**: `{value}`\n\n"

    for key, value in variables.items():
        if not _is_complex(key, value, first_names):
            continue
        if isinstance(value, str):
            info += f"-   env.**{key}**{fence_md(value, '')}\n"
        else:
            info += f"-   env.**{key}**{fence_md(pprint.pformat(value), 'python')}\n"

    return info


def _format_number(value: float | int | None) -> str:
    return "" if value is None else f"{value}"


class TraceBuilder:
    """Accumulates the sections of a run trace."""

    def __init__(self) -> None:
        self._errors = ""
        self._sections: list[str] = []

    @property
    def errors(self) -> str:
        return self._errors

    def add_errors(self, errors: str) -> None:
        self._errors += errors

    def add(self, section: str) -> None:
        self._sections.append(section)

    def render(self) -> str:
        return "\n# Prompt trace\n\n" + self._errors + "\n" + "".join(self._sections)

    def template(self, template: Template) -> None:
        self.add(
            f'## Prompt template "{template.title}" (`{template.id}`)\n'
            f"{numbered_fence_md(template.source)}\n\n"
        )

    def console_output(self, logs: str) -> None:
        section = "\n## console output\n"
        if logs:
            section += fence_md(logs)
        else:
            section += "> tip: use `{{ log(...) }}` from prompt templates"
        self.add(section)

    def expanded_prompt(self, text: str) -> None:
        self.add("\n## Expanded prompt\n" + fence_md(text))

    def variables(self, variables: dict[str, Any]) -> None:
        self.add(render_variables(variables))

    def system_header(self) -> None:
        self.add("## System prompt\n")

    def system_not_found(self, template_id: str) -> None:
        self.add(f"\n** error: `{template_id}` not found\n")

    def system_template(self, template: Template, expanded: str, errors: str = "") -> None:
        section = f"###  template: `{template.id}`\n"
        if template.model:
            section += f"-  model: `{template.model}`\n"
        if template.temperature is not None:
            section += f"-  temperature: {_format_number(template.temperature)}\n"
        if template.max_tokens is not None:
            section += f"-  max tokens: {_format_number(template.max_tokens)}\n"
        if errors:
            section += f"\n{errors}\n"
        section += numbered_fence_md(template.source)
        section += "#### Expanded system prompt"
        section += fence_md(expanded)
        self.add(section)

    def final_prompt(
        self,
        model: str | None,
        temperature: float | None,
        max_tokens: int | None,
        prompt: str,
    ) -> None:
        section = "\n\n## Final prompt\n\n"
        if model:
            section += f"-  model: `{model}`\n"
        if temperature is not None:
            section += f"-  temperature: {_format_number(temperature)}\n"
        if max_tokens is not None:
            section += f"-  max tokens: {_format_number(max_tokens)}\n"
        section += fence_md(prompt)
        self.add(section)

    def request_error(self, error: RequestError) -> None:
        section = "## Request error\n\n"
        if error.body is not None:
            section += f"\n> {error.body.message}\n\n"
            section += f"-  type: `{error.body.type}`\n"
            section += f"-  code: `{error.body.code}`\n"
        section += f"-   status: `{error.status}`, {error.status_text}\n"
        self.add(section)

    def request_cancelled(self) -> None:
        self.add("## Request cancelled\n\nThe user requested to cancel the request.\n")

    def request_failed(self, error: BaseException) -> None:
        self.add(f"## Request failed\n\n-   {type(error).__name__}: {error}\n")

    def ai_output(self, text: str) -> None:
        self.add("\n\n## AI Output\n\n" + fence_md(text))

    def extracted_variables(self, rendered: str) -> None:
        self.add(f"\n\n### Extracted Variables\n\n{rendered}\n")
