"""
Prompt template loading.

Templates are Markdown files with YAML frontmatter for metadata
(title, model, temperature, max_tokens, system, categories) and a
Jinja2 body, resolved with project -> global -> bundled precedence.
"""

from .loader import TemplateLoader, parse_frontmatter

__all__ = [
    "TemplateLoader",
    "parse_frontmatter",
]
