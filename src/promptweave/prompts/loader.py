"""
Template loader with multi-level override support.

Implements template loading with precedence:
1. Project directory (.promptweave/templates/)
2. Global directory (~/.promptweave/templates/)
3. Bundled defaults (promptweave/templates/)

A template id maps to ``<id>.md``; ids may contain dots and slashes
("system.files", "docs/review").
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from promptweave.config import TemplateSettings
from promptweave.exceptions import TemplateNotFoundError
from promptweave.models import Template

logger = logging.getLogger(__name__)

# Bundled templates shipped with the package
DEFAULTS_DIR = Path(__file__).parent.parent / "templates"

_FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML frontmatter from template content.

    Args:
        content: Raw file content

    Returns:
        Tuple of (frontmatter dict, body content)
    """
    match = _FRONTMATTER_PATTERN.match(content)

    if match:
        try:
            frontmatter = yaml.safe_load(match.group(1)) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Failed to parse frontmatter: {e}")
            return {}, content
        if not isinstance(frontmatter, dict):
            logger.warning("Ignoring frontmatter that is not a mapping")
            return {}, content[match.end() :]
        return frontmatter, content[match.end() :]

    return {}, content


class TemplateLoader:
    """Loads prompt templates from multiple sources with override precedence.

    Usage:
        loader = TemplateLoader(project_dir=Path("."))
        template = loader.load("system")
        project.templates = loader.load_all()
    """

    def __init__(
        self,
        project_dir: Path | None = None,
        global_dir: Path | None = None,
        defaults_dir: Path | None = None,
        settings: TemplateSettings | None = None,
    ):
        """Initialize the template loader.

        Args:
            project_dir: Project root directory
            global_dir: Global config directory (defaults to ~/.promptweave)
            defaults_dir: Directory for bundled defaults (auto-detected)
            settings: Template settings from the loaded config
        """
        settings = settings or TemplateSettings()
        self.project_dir = project_dir
        self.global_dir = global_dir or Path(settings.global_dir).expanduser()
        self.defaults_dir = defaults_dir or DEFAULTS_DIR

        # Build search paths in priority order
        self._search_paths: list[Path] = []
        if project_dir:
            self._search_paths.append(project_dir / settings.project_subdir)
        self._search_paths.append(self.global_dir / "templates")
        self._search_paths.append(self.defaults_dir)

        self._cache: dict[str, Template] = {}

    @property
    def search_paths(self) -> list[Path]:
        return list(self._search_paths)

    def clear_cache(self) -> None:
        """Clear the template cache."""
        self._cache.clear()

    def _find_template_file(self, template_id: str) -> Path | None:
        filename = f"{template_id}.md"
        for search_dir in self._search_paths:
            template_path = search_dir / filename
            if template_path.is_file():
                return template_path
        return None

    def load(self, template_id: str) -> Template:
        """Load a template by id.

        Resolution order: cache -> file search -> raise.

        Args:
            template_id: Template id (e.g., "system.files")

        Returns:
            Template instance

        Raises:
            TemplateNotFoundError: If no search path holds the template
        """
        if template_id in self._cache:
            return self._cache[template_id]

        template_file = self._find_template_file(template_id)
        if template_file is None:
            raise TemplateNotFoundError(template_id)

        content = template_file.read_text(encoding="utf-8")
        frontmatter, body = parse_frontmatter(content)

        template = Template.from_frontmatter(
            template_id=template_id,
            frontmatter=frontmatter,
            source=body.strip(),
            source_path=template_file,
        )
        self._cache[template_id] = template
        logger.debug(f"Loaded prompt template '{template_id}' from {template_file}")
        return template

    def exists(self, template_id: str) -> bool:
        return self._find_template_file(template_id) is not None

    def list_templates(self) -> list[str]:
        """List available template ids across all search paths."""
        templates: set[str] = set()

        for search_dir in self._search_paths:
            if not search_dir.exists():
                continue

            for md_file in search_dir.rglob("*.md"):
                rel_path = md_file.relative_to(search_dir)
                templates.add(rel_path.with_suffix("").as_posix())

        return sorted(templates)

    def load_all(self) -> dict[str, Template]:
        """Load every available template, keyed by id."""
        return {template_id: self.load(template_id) for template_id in self.list_templates()}
