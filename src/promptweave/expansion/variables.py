"""
Variable table construction.

Collects the files a fragment links to, its parent, its inline comment
attributes and static values into the flat table templates read through
``env``.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from promptweave.constants import ERROR_MARKER, FENCE, MARKDOWN_FENCE
from promptweave.models import Fragment, LinkedFile, Template

logger = logging.getLogger(__name__)


def static_vars() -> dict[str, Any]:
    """Values available to every template."""
    return {
        "fence": FENCE,
        "markdown_fence": MARKDOWN_FENCE,
        "error": ERROR_MARKER,
    }


def _relative(project_root: os.PathLike[str] | str, filename: str) -> str:
    try:
        return os.path.relpath(filename, project_root)
    except ValueError:
        # Different drive on Windows
        return filename


def build_variables(
    template: Template,
    templates: list[Template],
    fragment: Fragment,
    prompt_options: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build the variable table for one run.

    Args:
        template: Template being run
        templates: All templates known to the caller
        fragment: Fragment the template runs on
        prompt_options: Run options; ``ignore_output`` skips linked files

    Returns:
        Mapping of variable name to value
    """
    prompt_options = dict(prompt_options or {})
    source_file = fragment.file
    project = fragment.project
    ignore_output = bool(prompt_options.get("ignore_output"))

    links: list[LinkedFile] = []
    if not ignore_output:
        seen: set[str] = set()
        for fr in fragment.walk():
            for ref in fr.references:
                linked = project.find_file(ref.filename)
                if linked is None:
                    logger.debug(f"Skipping reference to unknown file {ref.filename}")
                    continue
                fn = _relative(project.root, linked.filename)
                if fn in seen:
                    continue
                seen.add(fn)
                links.append(LinkedFile(label=ref.name, filename=fn, content=linked.content))

    parents: list[LinkedFile] = []
    if fragment.parent is not None:
        parent = fragment.parent
        parents.append(
            LinkedFile(
                label=parent.title,
                filename=_relative(project.root, parent.file.filename),
                content=parent.file.content,
            )
        )

    variables: dict[str, Any] = {
        **static_vars(),
        "file": LinkedFile(
            label="current",
            filename=source_file.filename,
            content=source_file.content,
        ),
        "links": links,
        "parents": parents,
        "prompt_options": prompt_options,
        "template": template,
        "templates": templates,
        "vars": fragment.comment_attributes(),
    }
    logger.debug(
        f"Built variables for {template.id}: {len(links)} links, {len(parents)} parents"
    )
    return variables
