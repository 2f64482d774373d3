"""promptweave - expand prompt templates against documents and turn LLM answers into edits.

Templates are Jinja2 scripts with YAML frontmatter. A run expands a template
for a document fragment, sends the prompt to a chat-completion model, and
converts the fenced blocks of the answer into file edits for the caller to
apply.
"""

from promptweave.models import (
    CreateFileEdit,
    Fragment,
    InsertEdit,
    Project,
    Reference,
    ReplaceEdit,
    SourceFile,
    Template,
    TransformResponse,
)
from promptweave.runner import RunTemplateOptions, run_template

__version__ = "0.1.0"

__all__ = [
    "CreateFileEdit",
    "Fragment",
    "InsertEdit",
    "Project",
    "Reference",
    "ReplaceEdit",
    "RunTemplateOptions",
    "SourceFile",
    "Template",
    "TransformResponse",
    "run_template",
]
