"""Text rendering of tool outcomes for the transport layer."""

from __future__ import annotations

import json

from artifacthub_mcp.search import field_text
from artifacthub_mcp.tools.results import (
    ChartInfo,
    PropertyLookup,
    PropertySearch,
    TemplateSearch,
    TemplateSelection,
    ToolFailure,
    ToolOutcome,
    ToolPayload,
    ValuesDocument,
)

MATCH_MARKER = "<<< MATCH"


def render_outcome(outcome: ToolOutcome) -> str:
    """Render a payload, or the failure as 'Error <action>: <message>'."""
    if outcome.failure is not None:
        return render_failure(outcome.failure)
    if outcome.payload is None:
        raise ValueError("Tool outcome carries neither payload nor failure.")
    return render_payload(outcome.payload)


def render_failure(failure: ToolFailure) -> str:
    return f"Error {failure.action}: {failure.message}"


def render_payload(payload: ToolPayload) -> str:
    if isinstance(payload, ChartInfo):
        info: dict[str, object] = {
            "id": payload.package_id,
            "latest_version": payload.latest_version,
        }
        if payload.description is not None:
            info["description"] = payload.description
        return json.dumps(info, indent=2, ensure_ascii=False)
    if isinstance(payload, ValuesDocument):
        return payload.text
    if isinstance(payload, PropertyLookup):
        return _render_property_lookup(payload)
    if isinstance(payload, PropertySearch):
        return _render_property_search(payload)
    if isinstance(payload, TemplateSelection):
        return _render_template_selection(payload)
    if isinstance(payload, TemplateSearch):
        return _render_template_search(payload)
    raise TypeError(f"Unsupported tool payload: {type(payload).__name__}")


def format_value(value: object) -> str:
    """Pretty-print containers as JSON; stringify scalars."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    text = field_text(value)
    return "null" if text is None else text


def _render_property_lookup(payload: PropertyLookup) -> str:
    if not payload.found:
        return f"Property not found at path: {payload.path}"
    text = ""
    if payload.comment:
        text += f"# Comment:\n{payload.comment.strip()}\n\n"
    text += f"# Value at path {payload.path}:\n"
    text += format_value(payload.value)
    return text


def _render_property_search(payload: PropertySearch) -> str:
    if not payload.hits:
        return f'No properties matching "{payload.query}" found.'
    lines = [f"# Found {len(payload.hits)} matching properties:", ""]
    for position, hit in enumerate(payload.hits, start=1):
        record = hit.item
        lines.append(f"## {position}. {record.path}")
        if record.comment:
            lines.append(f"Comment: {record.comment.strip()}")
        if record.has_value:
            lines.append(f"Value: {format_value(record.value)}")
        else:
            lines.append("Value: [object]")
        lines.append("")
    return "\n".join(lines) + "\n"


def _render_template_selection(payload: TemplateSelection) -> str:
    if not payload.templates:
        return "No matching templates found for this chart"
    return "".join(
        f"--- Template: {template.name} ---\n{template.content}\n\n"
        for template in payload.templates
    )


def _render_template_search(payload: TemplateSearch) -> str:
    if not payload.groups:
        return f'No templates matching "{payload.query}" found.'
    lines = [f"# Found matches in {len(payload.groups)} templates:", ""]
    for position, group in enumerate(payload.groups, start=1):
        lines.append(f"## {position}. {group.template_name}")
        lines.append(
            f"### Matching lines with context ({group.total_matches} total matches):"
        )
        lines.append("")
        for match_position, match in enumerate(group.shown, start=1):
            lines.append(f"#### Match {match_position}:")
            lines.append("```")
            lines.extend(f"{line.line_number}: {line.text}" for line in match.before)
            lines.append(f"{match.record.line_number}: {match.record.content} {MATCH_MARKER}")
            lines.extend(f"{line.line_number}: {line.text}" for line in match.after)
            lines.append("```")
            lines.append("")
        if group.omitted > 0:
            lines.append(f"_{group.omitted} more matches not shown_")
            lines.append("")
    return "\n".join(lines) + "\n"
