"""Template expansion: variable tables, script evaluation, system prompts and traces."""

from promptweave.expansion.expander import ExpansionResult, VariableEnv, expand
from promptweave.expansion.system import SystemPrompt, resolve_system
from promptweave.expansion.trace import TraceBuilder
from promptweave.expansion.variables import build_variables, static_vars

__all__ = [
    "ExpansionResult",
    "SystemPrompt",
    "TraceBuilder",
    "VariableEnv",
    "build_variables",
    "expand",
    "resolve_system",
    "static_vars",
]
