"""Line-level indexing of template files with context retrieval."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from artifacthub_mcp.hub.models import TemplateFile

DEFAULT_CONTEXT_LINES = 3


@dataclass(slots=True, frozen=True)
class LineRecord:
    """A non-empty template line; line_number is 1-based."""

    template_name: str
    line_number: int
    content: str
    template_index: int


@dataclass(slots=True, frozen=True)
class ContextLine:
    """One raw line shown around a match."""

    line_number: int
    text: str


@dataclass(slots=True, frozen=True)
class LineIndex:
    """Searchable line records plus the raw lines of every template."""

    records: tuple[LineRecord, ...]
    lines_by_template: tuple[tuple[str, ...], ...]


def index_lines(templates: Sequence[TemplateFile]) -> LineIndex:
    """Split templates into trimmed, non-empty line records."""
    records: list[LineRecord] = []
    lines_by_template: list[tuple[str, ...]] = []
    for template_index, template in enumerate(templates):
        lines = tuple(template.content.split("\n"))
        lines_by_template.append(lines)
        for offset, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed:
                continue
            records.append(
                LineRecord(
                    template_name=template.name,
                    line_number=offset + 1,
                    content=trimmed,
                    template_index=template_index,
                )
            )
    return LineIndex(records=tuple(records), lines_by_template=tuple(lines_by_template))


def context_lines(
    index: LineIndex,
    template_index: int,
    line_number: int,
    radius: int = DEFAULT_CONTEXT_LINES,
) -> tuple[list[ContextLine], list[ContextLine]]:
    """Return up to radius raw lines before and after a 1-based line."""
    lines = index.lines_by_template[template_index]
    first_index = max(0, line_number - 1 - radius)
    last_index = min(len(lines), line_number + radius)
    before = [
        ContextLine(line_number=i + 1, text=lines[i]) for i in range(first_index, line_number - 1)
    ]
    after = [ContextLine(line_number=i + 1, text=lines[i]) for i in range(line_number, last_index)]
    return before, after
