"""
Data model for prompt runs.

Templates, the document model supplied by an external parser
(SourceFile / Fragment / Project), and the edit records a run produces.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

# (line, column), both zero based
Position = tuple[int, int]


@dataclass(frozen=True)
class Template:
    """A prompt template: a Jinja2 script plus model parameter overrides."""

    id: str
    title: str
    source: str
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    system: tuple[str, ...] | None = None
    categories: tuple[str, ...] | None = None
    read_clipboard: bool = False
    source_path: Path | None = None

    @classmethod
    def from_frontmatter(
        cls,
        template_id: str,
        frontmatter: dict[str, Any],
        source: str,
        source_path: Path | None = None,
    ) -> Template:
        """Create a template from parsed YAML frontmatter and body.

        Args:
            template_id: Template identifier (path without extension)
            frontmatter: Parsed frontmatter mapping
            source: Template body (the script)
            source_path: File the template was read from

        Returns:
            Template instance
        """
        system = frontmatter.get("system")
        if isinstance(system, str):
            system = [system]
        categories = frontmatter.get("categories")
        if isinstance(categories, str):
            categories = [categories]

        temperature = frontmatter.get("temperature")
        max_tokens = frontmatter.get("max_tokens", frontmatter.get("maxTokens"))

        return cls(
            id=template_id,
            title=str(frontmatter.get("title") or template_id),
            source=source,
            model=frontmatter.get("model"),
            temperature=float(temperature) if temperature is not None else None,
            max_tokens=int(max_tokens) if max_tokens is not None else None,
            system=tuple(system) if system else None,
            categories=tuple(categories) if categories else None,
            read_clipboard=bool(frontmatter.get("read_clipboard", False)),
            source_path=source_path,
        )


@dataclass
class Reference:
    """An outbound link from a fragment to another file."""

    name: str
    filename: str


@dataclass
class SourceFile:
    """A parsed document."""

    filename: str
    content: str
    project: Project | None = field(default=None, repr=False)


@dataclass
class Fragment:
    """A located region of a source document."""

    file: SourceFile
    title: str = ""
    start_pos: Position = (0, 0)
    end_pos: Position = (0, 0)
    references: list[Reference] = field(default_factory=list)
    parent: Fragment | None = field(default=None, repr=False)
    children: list[Fragment] = field(default_factory=list, repr=False)
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def project(self) -> Project:
        if self.file.project is None:
            raise ValueError(f"File {self.file.filename} is not attached to a project")
        return self.file.project

    def comment_attributes(self) -> dict[str, str]:
        """Inline comment directives (``@prompt`` and friends) found on this fragment."""
        return dict(self.attributes)

    def walk(self) -> Iterator[Fragment]:
        """Yield this fragment and all of its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class Project:
    """A set of parsed files and the templates available to them."""

    root: Path
    files: list[SourceFile] = field(default_factory=list)
    templates: dict[str, Template] = field(default_factory=dict)
    default_model: str | None = None

    def __post_init__(self) -> None:
        for f in self.files:
            f.project = self

    def add_file(self, source_file: SourceFile) -> SourceFile:
        source_file.project = self
        self.files.append(source_file)
        return source_file

    def find_file(self, filename: str) -> SourceFile | None:
        for f in self.files:
            if f.filename == filename:
                return f
        return None

    def get_template(self, template_id: str) -> Template | None:
        return self.templates.get(template_id)


@dataclass
class LinkedFile:
    """A file exposed to templates through the variable table."""

    label: str
    filename: str
    content: str


@dataclass
class ReplaceEdit:
    """Replace a text range of an existing file."""

    filename: str
    label: str
    range: tuple[Position, Position]
    text: str
    type: Literal["replace"] = "replace"


@dataclass
class CreateFileEdit:
    """Create a new file."""

    filename: str
    label: str
    text: str
    overwrite: bool = False
    type: Literal["createfile"] = "createfile"


@dataclass
class InsertEdit:
    """Insert text at a position of an existing file."""

    filename: str
    label: str
    pos: Position
    text: str
    type: Literal["insert"] = "insert"


Edit = ReplaceEdit | CreateFileEdit | InsertEdit


@dataclass
class FileEdit:
    """Before/after content of a file touched by a run. ``before`` is None for new files."""

    before: str | None
    after: str


@dataclass
class TransformResponse:
    """Result of running a template on a fragment."""

    edits: list[Edit] = field(default_factory=list)
    file_edits: dict[str, FileEdit] = field(default_factory=dict)
    trace: str = ""
    text: str = ""
    summary: str | None = None
