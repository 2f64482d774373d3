"""
Inline prompts.

Fragments can carry extra instructions as comment attributes, e.g.::

    <!-- @prompt.review.short
    You are concise.
    -->

A template declaring ``categories: [review.short]`` picks up ``@prompt``,
``@prompt.review`` and ``@prompt.review.short``; a template without
categories picks up the plain ``@prompt`` attribute.
"""

from __future__ import annotations

from dataclasses import dataclass

from promptweave.models import Template
from promptweave.utils.markdown import trim_newlines

INLINE_PROMPT_ATTRIBUTE = "@prompt"

_HELP = """
## Inline prompts

Added as comment at the end of a fragment:

```markdown
Lorem ipsum...

<!-- @prompt.NAME
You are concise.
-->
```

"""


@dataclass
class InlinePrompts:
    text: str = ""
    info: str = ""


def prefixes(name: str) -> list[str]:
    """'foo.bar.baz' -> ['foo', 'foo.bar', 'foo.bar.baz']"""
    words = name.split(".")
    return [".".join(words[: i + 1]) for i in range(len(words))]


def match_inline_prompts(template: Template, attrs: dict[str, str]) -> InlinePrompts:
    """Collect the inline prompt attributes matching a template's categories."""
    result = InlinePrompts()
    if not template.categories and INLINE_PROMPT_ATTRIBUTE not in attrs:
        return result

    result.info += _HELP

    if template.categories:
        keys = [
            key
            for category in template.categories
            for key in prefixes(f"{INLINE_PROMPT_ATTRIBUTE}.{category}")
        ]
    else:
        keys = [INLINE_PROMPT_ATTRIBUTE]

    used: set[str] = set()
    for key in keys:
        if key in used:
            continue
        used.add(key)
        if key not in attrs:
            result.info += f"-   **{key}** missing\n"
        else:
            value = attrs[key]
            result.info += f"-   **{key}**\n{trim_newlines(value)}\n"
            result.text += value
    result.info += "\n"
    return result
