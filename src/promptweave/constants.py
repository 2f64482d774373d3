"""Defaults shared across the expansion pipeline."""

DEFAULT_MODEL = "gpt-4"
DEFAULT_TEMPERATURE = 0.2  # 0.0-2.0
DEFAULT_MAX_TOKENS = 800

SYSTEM_TEMPLATE_ID = "system"

# Emitting this value from a template aborts the run with the rest of the line as message.
# Private-use code points keep it from colliding with document text.
ERROR_MARKER = "\ue000error\ue000"

FENCE = "```"
MARKDOWN_FENCE = "`````"

# Wide enough to survive code fences inside traced content.
TRACE_FENCE = "```````````````"

FILE_BLOCK_PREFIX = "File "
SUMMARY_BLOCK = "SUMMARY"

CONFIG_DIR_NAME = ".promptweave"
PROJECT_TEMPLATES_SUBDIR = ".promptweave/templates"
