"""
System prompt resolution.

Expands the system templates a template depends on and resolves the
model parameters with precedence:
1. The main template
2. The first system template that sets the value
3. The project default (model only)
4. Configuration defaults
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from promptweave.config import LLMSettings
from promptweave.constants import SYSTEM_TEMPLATE_ID
from promptweave.exceptions import SystemTemplateNotFoundError
from promptweave.expansion.expander import expand
from promptweave.expansion.trace import TraceBuilder
from promptweave.models import Project, Template

logger = logging.getLogger(__name__)


@dataclass
class SystemPrompt:
    """Combined system text and resolved request parameters."""

    text: str
    model: str
    temperature: float
    max_tokens: int
    templates: list[str]


def system_template_ids(template: Template) -> list[str]:
    """Declared system templates, with the canonical one first unless listed."""
    ids = list(template.system or [])
    if SYSTEM_TEMPLATE_ID not in ids:
        ids.insert(0, SYSTEM_TEMPLATE_ID)
    return ids


async def resolve_system(
    template: Template,
    project: Project,
    variables: dict[str, Any],
    trace: TraceBuilder,
    settings: LLMSettings | None = None,
) -> SystemPrompt:
    """
    Expand the system templates of a template.

    Args:
        template: Main template
        project: Project to resolve system template ids against
        variables: Variable table shared with the main expansion
        trace: Trace receiving one subsection per system template
        settings: LLM defaults used when no template sets a parameter

    Returns:
        SystemPrompt with the combined text and resolved parameters

    Raises:
        SystemTemplateNotFoundError: If the canonical system template is
            needed but missing from the project
    """
    settings = settings or LLMSettings()
    model = template.model
    temperature = template.temperature
    max_tokens = template.max_tokens

    text = ""
    used: list[str] = []

    trace.system_header()
    for i, template_id in enumerate(system_template_ids(template)):
        system = project.get_template(template_id)
        if system is None:
            if template_id:
                logger.warning(f"System template '{template_id}' not found")
                trace.system_not_found(template_id)
            if i > 0:
                continue
            system = project.get_template(SYSTEM_TEMPLATE_ID)
            if system is None:
                raise SystemTemplateNotFoundError(SYSTEM_TEMPLATE_ID)

        result = await expand(system, variables)
        text += result.text + "\n"
        used.append(system.id)

        if model is None:
            model = system.model
        if temperature is None:
            temperature = system.temperature
        if max_tokens is None:
            max_tokens = system.max_tokens

        trace.system_template(system, result.text, result.errors)
        logger.debug(f"Expanded system template '{system.id}' ({len(result.text)} chars)")

    return SystemPrompt(
        text=text,
        model=model or project.default_model or settings.default_model,
        temperature=temperature if temperature is not None else settings.default_temperature,
        max_tokens=max_tokens if max_tokens is not None else settings.default_max_tokens,
        templates=used,
    )
