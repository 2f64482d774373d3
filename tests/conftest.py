"""Pytest configuration and shared fixtures for promptweave tests."""

import asyncio
import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from promptweave.config import PromptweaveConfig
from promptweave.llm.transport import ChatRequest
from promptweave.models import Fragment, Project, Reference, SourceFile, Template


class FakeTransport:
    """ChatTransport returning a canned answer or raising a canned error."""

    def __init__(self, answer: str = "", error: BaseException | None = None):
        self.answer = answer
        self.error = error
        self.requests: list[ChatRequest] = []

    async def complete(
        self, request: ChatRequest, cancel_event: asyncio.Event | None = None
    ) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.answer


class MemoryFileSystem:
    """FileSystem over a dict of absolute filename -> content."""

    def __init__(self, files: dict[str, str] | None = None):
        self.files = dict(files or {})
        self.reads: list[str] = []

    async def exists(self, path: str) -> bool:
        return path in self.files

    async def read_text(self, path: str) -> str:
        self.reads.append(path)
        return self.files[path]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ~ at an empty directory so a user's ~/.promptweave never leaks into tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def system_template() -> Template:
    return Template(id="system", title="System", source="You are helpful.")


@pytest.fixture
def project(temp_dir: Path, system_template: Template) -> Project:
    """A project with a README, a linked notes file and the canonical system template."""
    readme = SourceFile(filename=str(temp_dir / "README.md"), content="# Readme\n\nSee notes.\n")
    notes = SourceFile(filename=str(temp_dir / "notes.md"), content="Some notes.\n")
    return Project(
        root=temp_dir,
        files=[readme, notes],
        templates={system_template.id: system_template},
    )


@pytest.fixture
def fragment(project: Project) -> Fragment:
    """Fragment covering the README and linking to notes.md."""
    readme = project.files[0]
    return Fragment(
        file=readme,
        title="Readme",
        start_pos=(0, 0),
        end_pos=(2, 10),
        references=[Reference(name="notes", filename=project.files[1].filename)],
    )


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport(answer="Hello")


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def default_config() -> PromptweaveConfig:
    """Create a default PromptweaveConfig for testing."""
    return PromptweaveConfig()


@pytest.fixture
def make_transport() -> type[FakeTransport]:
    """Factory for transports with a specific answer or error."""
    return FakeTransport


@pytest.fixture
def make_fs() -> type[MemoryFileSystem]:
    """Factory for in-memory file systems with given contents."""
    return MemoryFileSystem
