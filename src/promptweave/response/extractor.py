"""
Post-processing of completion text.

Splits the labelled blocks of an answer into file contents (``File <path>``),
the run summary (``SUMMARY``) and the remaining output text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from promptweave.constants import FILE_BLOCK_PREFIX, SUMMARY_BLOCK
from promptweave.models import Fragment
from promptweave.response.fences import FencedBlock, extract_fenced, fenced_variables

logger = logging.getLogger(__name__)

_WHOLE_FENCE = re.compile(r"^(```+)(\w*)\n")

BlockParser = Callable[[str], list[FencedBlock]]


@dataclass
class FileBlock:
    """Content the model produced for one file."""

    name: str
    filename: str
    content: str


@dataclass
class ExtractedResponse:
    text: str
    variables: dict[str, str] = field(default_factory=dict)
    files: list[FileBlock] = field(default_factory=list)
    summary: str | None = None
    blocks: list[FencedBlock] = field(default_factory=list)


def unwrap_fence(text: str) -> str:
    """Strip a code fence wrapping the whole text, if any."""
    m = _WHOLE_FENCE.match(text)
    if m and len(text) >= len(m.group(0)) + len(m.group(1)) and text.endswith(m.group(1)):
        return text[len(m.group(0)) : -len(m.group(1))].strip()
    return text


def resolve_block_path(name: str, fragment: Fragment) -> tuple[str, str]:
    """
    Resolve the path of a ``File <path>`` block.

    Returns:
        Tuple of (path as written without leading "./", absolute filename
        relative to the fragment's file)
    """
    relative = name[len(FILE_BLOCK_PREFIX) :].strip()
    if relative.startswith("./"):
        relative = relative[2:]
    filename = str((Path(fragment.file.filename).parent / relative).resolve())
    return relative, filename


def _without_blocks(text: str, blocks: list[FencedBlock]) -> str:
    if not blocks:
        return text
    lines = re.split(r"\r?\n", text)
    dropped: set[int] = set()
    for block in blocks:
        dropped.update(range(block.start, block.end))
    return "\n".join(line for i, line in enumerate(lines) if i not in dropped)


def extract_response(
    text: str,
    fragment: Fragment,
    parse: BlockParser = extract_fenced,
) -> ExtractedResponse:
    """
    Extract files, summary and output text from a completion.

    Args:
        text: Raw completion text
        fragment: Fragment the run targeted; file paths resolve against its file
        parse: Block parser producing the labelled blocks

    Returns:
        ExtractedResponse; ``variables`` holds the blocks that were neither
        files nor the summary
    """
    blocks = parse(text)
    variables = fenced_variables(blocks)
    consumed: set[str] = set()
    result = ExtractedResponse(text="", blocks=blocks)

    for name, value in list(variables.items()):
        if name.startswith(FILE_BLOCK_PREFIX):
            del variables[name]
            consumed.add(name)
            relative, filename = resolve_block_path(name, fragment)
            result.files.append(FileBlock(name=relative, filename=filename, content=value))
        elif name == SUMMARY_BLOCK:
            del variables[name]
            consumed.add(name)
            result.summary = value.strip()

    if len(variables) == 1:
        # A single remaining "Foo: ..." block is taken as the output
        (only_name,) = variables
        logger.debug(f"Using block '{only_name}' as output text")
        output = variables[only_name]
    else:
        output = _without_blocks(text, [b for b in blocks if b.name in consumed])

    result.text = unwrap_fence(output.strip())
    result.variables = variables
    logger.debug(
        f"Extracted {len(result.files)} files, summary={result.summary is not None}, "
        f"{len(variables)} other blocks"
    )
    return result
