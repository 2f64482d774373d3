"""Tests for system prompt resolution."""

import pytest

from promptweave.config import LLMSettings
from promptweave.constants import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE
from promptweave.exceptions import SystemTemplateNotFoundError
from promptweave.expansion.system import resolve_system, system_template_ids
from promptweave.expansion.trace import TraceBuilder
from promptweave.models import Project, Template

pytestmark = pytest.mark.unit


def add_template(project: Project, template_id: str, source: str = "", **overrides) -> Template:
    template = Template(id=template_id, title=template_id, source=source, **overrides)
    project.templates[template.id] = template
    return template


class TestSystemTemplateIds:
    def test_defaults_to_canonical(self) -> None:
        assert system_template_ids(Template(id="t", title="t", source="")) == ["system"]

    def test_canonical_prepended(self) -> None:
        template = Template(id="t", title="t", source="", system=("system.files",))
        assert system_template_ids(template) == ["system", "system.files"]

    def test_canonical_kept_in_place_when_listed(self) -> None:
        template = Template(id="t", title="t", source="", system=("extra", "system"))
        assert system_template_ids(template) == ["extra", "system"]


class TestResolveSystem:
    @pytest.mark.asyncio
    async def test_model_from_system_template(self, project: Project) -> None:
        add_template(project, "extra", model="X", source="Extra rules.")
        main = Template(id="main", title="Main", source="", system=("extra",))

        result = await resolve_system(main, project, {}, TraceBuilder())

        assert result.model == "X"

    @pytest.mark.asyncio
    async def test_baseline_defaults(self, project: Project) -> None:
        main = Template(id="main", title="Main", source="")

        result = await resolve_system(main, project, {}, TraceBuilder())

        assert result.model == DEFAULT_MODEL
        assert result.temperature == DEFAULT_TEMPERATURE
        assert result.max_tokens == DEFAULT_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_main_template_wins(self, project: Project) -> None:
        add_template(project, "extra", model="X", temperature=0.9, max_tokens=100)
        main = Template(
            id="main",
            title="Main",
            source="",
            model="main-model",
            temperature=0.0,
            max_tokens=2000,
            system=("extra",),
        )

        result = await resolve_system(main, project, {}, TraceBuilder())

        assert result.model == "main-model"
        assert result.temperature == 0.0
        assert result.max_tokens == 2000

    @pytest.mark.asyncio
    async def test_first_system_template_wins(self, project: Project) -> None:
        add_template(project, "a", temperature=0.5)
        add_template(project, "b", temperature=0.7, max_tokens=42)
        main = Template(id="main", title="Main", source="", system=("a", "b"))

        result = await resolve_system(main, project, {}, TraceBuilder())

        assert result.temperature == 0.5
        assert result.max_tokens == 42

    @pytest.mark.asyncio
    async def test_project_default_model(self, project: Project) -> None:
        project.default_model = "project-model"
        main = Template(id="main", title="Main", source="")

        result = await resolve_system(main, project, {}, TraceBuilder())

        assert result.model == "project-model"

    @pytest.mark.asyncio
    async def test_settings_defaults(self, project: Project) -> None:
        settings = LLMSettings(default_model="gpt-4o", default_temperature=1.0, default_max_tokens=64)
        main = Template(id="main", title="Main", source="")

        result = await resolve_system(main, project, {}, TraceBuilder(), settings)

        assert (result.model, result.temperature, result.max_tokens) == ("gpt-4o", 1.0, 64)

    @pytest.mark.asyncio
    async def test_text_is_concatenated(self, project: Project) -> None:
        add_template(project, "extra", source="Use {{ env.style }}.")
        main = Template(id="main", title="Main", source="", system=("extra",))

        result = await resolve_system(main, project, {"style": "bullets"}, TraceBuilder())

        assert result.text == "You are helpful.\n\n\nUse bullets.\n\n\n"
        assert result.templates == ["system", "extra"]

    @pytest.mark.asyncio
    async def test_missing_template_is_skipped(self, project: Project) -> None:
        main = Template(id="main", title="Main", source="", system=("nope",))
        trace = TraceBuilder()

        result = await resolve_system(main, project, {}, trace)

        assert result.templates == ["system"]
        assert "** error: `nope` not found" in trace.render()

    @pytest.mark.asyncio
    async def test_missing_first_entry_falls_back_to_canonical(self, project: Project) -> None:
        main = Template(id="main", title="Main", source="", system=("nope", "system"))

        result = await resolve_system(main, project, {}, TraceBuilder())

        assert result.templates == ["system", "system"]

    @pytest.mark.asyncio
    async def test_missing_canonical_raises(self, project: Project) -> None:
        project.templates.clear()
        main = Template(id="main", title="Main", source="")

        with pytest.raises(SystemTemplateNotFoundError):
            await resolve_system(main, project, {}, TraceBuilder())

    @pytest.mark.asyncio
    async def test_trace_lists_overrides(self, project: Project) -> None:
        add_template(project, "extra", model="X", temperature=0.3, source="Rules")
        main = Template(id="main", title="Main", source="", system=("extra",))
        trace = TraceBuilder()

        await resolve_system(main, project, {}, trace)

        rendered = trace.render()
        assert "## System prompt" in rendered
        assert "###  template: `extra`" in rendered
        assert "-  model: `X`" in rendered
        assert "-  temperature: 0.3" in rendered
        assert "#### Expanded system prompt" in rendered
