"""Tests for completion post-processing."""

from pathlib import Path

import pytest

from promptweave.models import Fragment
from promptweave.response.extractor import (
    extract_response,
    resolve_block_path,
    unwrap_fence,
)
from promptweave.response.fences import FencedBlock

pytestmark = pytest.mark.unit


class TestUnwrapFence:
    def test_wrapped_text(self) -> None:
        assert unwrap_fence("```python\nprint()\n```") == "print()"

    def test_plain_text_unchanged(self) -> None:
        assert unwrap_fence("just text") == "just text"

    def test_partial_fence_unchanged(self) -> None:
        text = "```\ncode\n```\nand more"
        assert unwrap_fence(text) == text


class TestResolveBlockPath:
    def test_relative_to_fragment_file(self, fragment: Fragment, temp_dir: Path) -> None:
        relative, filename = resolve_block_path("File ./docs/a.md", fragment)

        assert relative == "docs/a.md"
        assert filename == str(temp_dir / "docs" / "a.md")

    def test_without_dot_prefix(self, fragment: Fragment, temp_dir: Path) -> None:
        relative, filename = resolve_block_path("File b.txt", fragment)

        assert relative == "b.txt"
        assert filename == str(temp_dir / "b.txt")


class TestExtractResponse:
    def test_plain_answer(self, fragment: Fragment) -> None:
        result = extract_response("  Hello there.\n", fragment)

        assert result.text == "Hello there."
        assert result.files == []
        assert result.summary is None

    def test_single_block_becomes_output(self, fragment: Fragment) -> None:
        result = extract_response("Foo:\n```\nbar\n```", fragment)

        assert result.text == "bar"
        assert result.variables == {"Foo": "bar\n"}

    def test_multiple_blocks_keep_full_text(self, fragment: Fragment) -> None:
        text = "A:\n```\none\n```\nB:\n```\ntwo\n```"

        result = extract_response(text, fragment)

        assert result.text == text
        assert set(result.variables) == {"A", "B"}

    def test_files_and_summary_are_consumed(self, fragment: Fragment, temp_dir: Path) -> None:
        text = "Here you go.\n\nFile ./a.txt:\n```\nhello\n```\n\nSUMMARY: Created a.txt\n"

        result = extract_response(text, fragment)

        assert result.text == "Here you go."
        assert result.summary == "Created a.txt"
        assert result.variables == {}
        assert len(result.files) == 1
        assert result.files[0].name == "a.txt"
        assert result.files[0].filename == str(temp_dir / "a.txt")
        assert result.files[0].content == "hello\n"

    def test_prose_with_upper_case_label_is_kept(self, fragment: Fragment) -> None:
        text = "The review follows.\n\nWARNING: the loop never ends.\n\nThe rest of a long answer."

        result = extract_response(text, fragment)

        assert result.text == text
        assert result.variables == {}

    def test_prose_around_unlabelled_fence_is_kept(self, fragment: Fragment) -> None:
        text = "Here is the fix\n```py\nx = 1\n```\nThis sets x before use."

        result = extract_response(text, fragment)

        assert result.text == text
        assert result.variables == {}

    def test_prose_next_to_file_block_is_kept(self, fragment: Fragment) -> None:
        text = "NOTE: review the path.\nFile ./a.txt:\n```\nhello\n```\n"

        result = extract_response(text, fragment)

        assert result.text == "NOTE: review the path."
        assert len(result.files) == 1

    def test_whole_answer_fence_is_unwrapped(self, fragment: Fragment) -> None:
        result = extract_response("```markdown\n# Title\n```", fragment)

        assert result.text == "# Title"

    def test_custom_parser(self, fragment: Fragment) -> None:
        def parse(text: str) -> list[FencedBlock]:
            return [FencedBlock(name="SUMMARY", content=" done ", language="", start=0, end=1)]

        result = extract_response("anything", fragment, parse=parse)

        assert result.summary == "done"
        assert result.text == ""
