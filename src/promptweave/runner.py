"""
Template runs.

Expands a template for a fragment, asks the model, and turns the answer
into edits. Every step is recorded in a Markdown trace returned with the
result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from promptweave.config import PromptweaveConfig, load_config
from promptweave.expansion.expander import expand
from promptweave.expansion.inline import match_inline_prompts
from promptweave.expansion.system import resolve_system
from promptweave.expansion.trace import TraceBuilder
from promptweave.expansion.variables import build_variables
from promptweave.filesystem import FileSystem, LocalFileSystem
from promptweave.llm.invoker import InfoCallback, invoke_completion
from promptweave.llm.transport import ChatMessage, ChatRequest, ChatTransport
from promptweave.models import Fragment, Template, TransformResponse
from promptweave.response.edits import synthesize_edits
from promptweave.response.extractor import extract_response
from promptweave.response.fences import render_fenced_variables

logger = logging.getLogger(__name__)

TEMPLATE_FAILED_HEADER = "# Template failed\nSee info below.\n"


@dataclass
class RunTemplateOptions:
    """Per-run options."""

    prompt_options: dict[str, Any] = field(default_factory=dict)
    info_cb: InfoCallback | None = None
    read_clipboard: Callable[[], Awaitable[str]] | None = None
    cancel_event: asyncio.Event | None = None
    config_file: str | None = None


async def run_template(
    template: Template,
    templates: list[Template],
    fragment: Fragment,
    options: RunTemplateOptions | None = None,
    transport: ChatTransport | None = None,
    fs: FileSystem | None = None,
    config: PromptweaveConfig | None = None,
) -> TransformResponse:
    """
    Run a template on a fragment.

    Args:
        template: Template to run
        templates: All templates known to the caller
        fragment: Target fragment
        options: Run options (prompt options, callbacks, cancellation)
        transport: Chat backend (default: LiteLLMTransport from config)
        fs: File system used to compute edits (default: local disk)
        config: Configuration (default: loaded from ``options.config_file``
            or ~/.promptweave/config.yaml)

    Returns:
        TransformResponse with edits, file edits, trace, output text and
        summary. A template that fails to expand returns its trace as text
        without contacting the model.

    Raises:
        TransportError: If the completion request fails or is cancelled
        SystemTemplateNotFoundError: If the canonical system template is missing
        ConfigError: If the configuration file is invalid
    """
    options = options or RunTemplateOptions()
    if config is None:
        config = load_config(options.config_file)
    fs = fs or LocalFileSystem()
    project = fragment.project

    logger.info(f"Running template '{template.id}' on {fragment.file.filename}")

    variables = build_variables(template, templates, fragment, options.prompt_options)
    if template.read_clipboard and options.read_clipboard is not None:
        variables["clipboard"] = await options.read_clipboard()

    trace = TraceBuilder()
    trace.template(template)

    inline = match_inline_prompts(template, fragment.comment_attributes())
    prompt = await expand(template, variables)
    expanded = inline.text + "\n" + prompt.text
    trace.add_errors(prompt.errors)

    trace.add(inline.info)
    # always present, even when empty, so template authors discover log()
    trace.console_output(prompt.logs)
    trace.expanded_prompt(prompt.text)
    trace.variables(variables)

    system = await resolve_system(template, project, variables, trace, config.llm)
    trace.final_prompt(system.model, system.temperature, system.max_tokens, expanded)

    if not prompt.success:
        logger.warning(f"Template '{template.id}' failed to expand")
        rendered = trace.render()
        return TransformResponse(trace=rendered, text=TEMPLATE_FAILED_HEADER + rendered)

    if transport is None:
        from promptweave.llm.litellm import LiteLLMTransport

        transport = LiteLLMTransport.from_settings(config.llm)

    request = ChatRequest(
        model=system.model,
        temperature=system.temperature,
        max_tokens=system.max_tokens,
        messages=[
            ChatMessage(role="system", content=system.text),
            ChatMessage(role="user", content=expanded),
        ],
    )
    text = await invoke_completion(
        request,
        transport,
        trace,
        info_cb=options.info_cb,
        cancel_event=options.cancel_event,
    )

    trace.ai_output(text)
    extracted = extract_response(text, fragment)
    trace.extracted_variables(render_fenced_variables(extracted.blocks))

    edit_set = await synthesize_edits(extracted.files, fragment, fs, label=template.title)

    logger.info(
        f"Template '{template.id}' produced {len(edit_set.edits)} edits "
        f"for {len(edit_set.file_edits)} files"
    )
    return TransformResponse(
        edits=edit_set.edits,
        file_edits=edit_set.file_edits,
        trace=trace.render(),
        text=extracted.text,
        summary=extracted.summary,
    )
