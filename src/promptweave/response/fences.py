"""
Labelled block extraction from LLM answers.

Recognized forms::

    File ./src/app.py:
    ```python
    print("hi")
    ```

    SUMMARY: one line value

A fenced block is named by the line right above its opening fence
(surrounding ``**``, backticks, heading marks and a trailing colon are
dropped); the label line must end with a colon. Unlabelled fences are not
variables. Single-line ``NAME: value`` lines are variables only for the
conventional names (``SUMMARY``) or when the line is the whole answer, so
prose such as ``WARNING: ...`` stays part of the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from promptweave.constants import SUMMARY_BLOCK
from promptweave.utils.markdown import fence_md

_FENCE_OPEN = re.compile(r"^\s*(?P<fence>`{3,}|~{3,})(?P<language>[\w+#.-]*)\s*$")
_LABEL = re.compile(r"^\s*(?:#+\s*)?(?:\*\*)?(?P<name>[^*:]+?)(?:\*\*)?\s*:\s*(?:\*\*)?\s*$")
_INLINE_VAR = re.compile(r"^(?P<name>[A-Z][A-Z0-9_]*):\s*(?P<value>\S.*?)\s*$")

MAX_LABEL_LENGTH = 120

# Single-line variables recognized anywhere in an answer
INLINE_VARIABLE_NAMES = frozenset({SUMMARY_BLOCK})


@dataclass
class FencedBlock:
    """A named value found in an answer; ``start``/``end`` are line indices."""

    name: str
    content: str
    language: str
    start: int
    end: int


def _label(line: str) -> str | None:
    if len(line) > MAX_LABEL_LENGTH:
        return None
    m = _LABEL.match(line)
    if not m:
        return None
    name = m.group("name").replace("`", "").strip()
    return name or None


def _is_close(line: str, fence: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= len(fence) and stripped == fence[0] * len(stripped)


def extract_fenced(
    text: str,
    inline_names: frozenset[str] = INLINE_VARIABLE_NAMES,
) -> list[FencedBlock]:
    """Parse labelled fenced blocks and single-line variables out of text."""
    lines = re.split(r"\r?\n", text)
    single_line = sum(1 for line in lines if line.strip()) == 1
    blocks: list[FencedBlock] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        m = _FENCE_OPEN.match(line)
        if m:
            fence = m.group("fence")
            j = i + 1
            while j < len(lines) and not _is_close(lines[j], fence):
                j += 1
            body = lines[i + 1 : j]
            content = "\n".join(body) + "\n" if body else ""
            name = _label(lines[i - 1]) if i > 0 else None
            if name:
                blocks.append(
                    FencedBlock(
                        name=name,
                        content=content,
                        language=m.group("language"),
                        start=i - 1,
                        end=min(j + 1, len(lines)),
                    )
                )
            i = j + 1
            continue

        m = _INLINE_VAR.match(line)
        if m and (m.group("name") in inline_names or single_line):
            blocks.append(
                FencedBlock(
                    name=m.group("name"),
                    content=m.group("value"),
                    language="",
                    start=i,
                    end=i + 1,
                )
            )
        i += 1

    return blocks


def fenced_variables(blocks: list[FencedBlock]) -> dict[str, str]:
    """Name -> text mapping; repeated names are concatenated in order."""
    variables: dict[str, str] = {}
    for block in blocks:
        variables[block.name] = variables.get(block.name, "") + block.content
    return variables


def render_fenced_variables(blocks: list[FencedBlock]) -> str:
    """Markdown listing of extracted blocks for the trace."""
    if not blocks:
        return "> no variables found"
    return "\n".join(
        f"-   `{block.name}`{fence_md(block.content, block.language)}" for block in blocks
    )
