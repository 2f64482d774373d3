"""Completion post-processing: labelled blocks, output text and file edits."""

from promptweave.response.edits import EditSet, synthesize_edits
from promptweave.response.extractor import (
    ExtractedResponse,
    FileBlock,
    extract_response,
    unwrap_fence,
)
from promptweave.response.fences import (
    FencedBlock,
    extract_fenced,
    fenced_variables,
    render_fenced_variables,
)

__all__ = [
    "EditSet",
    "ExtractedResponse",
    "FencedBlock",
    "FileBlock",
    "extract_fenced",
    "extract_response",
    "fenced_variables",
    "render_fenced_variables",
    "synthesize_edits",
    "unwrap_fence",
]
