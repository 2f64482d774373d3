"""
Edit synthesis.

Turns the file blocks of an answer into create/replace edits against the
current file contents. Nothing is written here; the caller applies the
returned edits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from promptweave.filesystem import FileSystem
from promptweave.models import (
    CreateFileEdit,
    Edit,
    FileEdit,
    Fragment,
    InsertEdit,
    ReplaceEdit,
)
from promptweave.response.extractor import FileBlock
from promptweave.utils.markdown import string_to_pos

logger = logging.getLogger(__name__)


@dataclass
class EditSet:
    edits: list[Edit] = field(default_factory=list)
    file_edits: dict[str, FileEdit] = field(default_factory=dict)


def _resolve(filename: str) -> str:
    return str(Path(filename).resolve())


async def synthesize_edits(
    files: list[FileBlock],
    fragment: Fragment,
    fs: FileSystem,
    label: str,
) -> EditSet:
    """
    Compute edits for the file blocks of an answer.

    Args:
        files: File blocks extracted from the answer
        fragment: Fragment the run targeted
        fs: File system to compare against
        label: Label of the link edit (usually the template title)

    Returns:
        EditSet; unchanged files produce no edit
    """
    result = EditSet()
    own_filename = _resolve(fragment.file.filename)
    referenced = {_resolve(ref.filename) for ref in fragment.references}
    links: list[str] = []

    for block in files:
        fn = block.filename
        if await fs.exists(fn):
            content = await fs.read_text(fn)
            if content != block.content:
                result.file_edits[fn] = FileEdit(before=content, after=block.content)
                result.edits.append(
                    ReplaceEdit(
                        filename=fn,
                        label=f"Update {fn}",
                        range=((0, 0), string_to_pos(content)),
                        text=block.content,
                    )
                )
            else:
                logger.debug(f"{fn} unchanged")
        else:
            result.file_edits[fn] = FileEdit(before=None, after=block.content)
            result.edits.append(
                CreateFileEdit(
                    filename=fn,
                    label=f"Create {fn}",
                    text=block.content,
                    overwrite=True,
                )
            )

        if fn not in referenced and fn != own_filename:
            links.append(f"-   [{block.name}](./{block.name})")

    if links:
        result.edits.append(
            InsertEdit(
                filename=fragment.file.filename,
                label=label,
                pos=fragment.end_pos,
                text="\n\n" + "\n".join(links),
            )
        )

    logger.info(f"Synthesized {len(result.edits)} edits for {len(files)} file blocks")
    return result
