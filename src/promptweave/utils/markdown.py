"""Markdown helpers used when rendering traces."""

from __future__ import annotations

import re

from promptweave.constants import TRACE_FENCE


def trim_newlines(s: str) -> str:
    """Strip leading and trailing newlines, keeping other whitespace."""
    return s.strip("\n")


def fence_md(text: str, content_type: str = "markdown") -> str:
    """Wrap text in a fence wide enough to contain ordinary code fences."""
    return f"\n{TRACE_FENCE}{content_type}\n{trim_newlines(text)}\n{TRACE_FENCE}\n"


def numbered_fence_md(text: str, content_type: str = "jinja") -> str:
    """Fence text with right-aligned line numbers, for template listings."""
    lines = re.split(r"\r?\n", text)
    numbered = "\n".join(f"{i + 1:>3}: {line}" for i, line in enumerate(lines))
    return fence_md(numbered, content_type)


def string_to_pos(text: str) -> tuple[int, int]:
    """Return the (line, column) position just past the end of text."""
    lines = text.split("\n")
    return len(lines) - 1, len(lines[-1])
