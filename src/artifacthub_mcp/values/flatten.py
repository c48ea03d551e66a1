"""Flatten a values tree into one record per reachable property."""

from __future__ import annotations

from dataclasses import dataclass

from artifacthub_mcp.values.document import YamlNode, children, is_container, to_plain
from artifacthub_mcp.values.navigator import PATH_SEPARATOR


@dataclass(slots=True, frozen=True)
class PropertyRecord:
    """A property of the values document addressed by its dotted path."""

    name: str
    path: str
    comment: str | None
    value: object = None
    has_value: bool = False


def flatten(root: YamlNode) -> list[PropertyRecord]:
    """Walk the tree pre-order, in declaration order."""
    records: list[PropertyRecord] = []
    _collect(root, prefix="", inherited_comment=None, records=records)
    return records


def _collect(
    node: YamlNode,
    prefix: str,
    inherited_comment: str | None,
    records: list[PropertyRecord],
) -> None:
    for key, value in children(node):
        path = f"{prefix}{PATH_SEPARATOR}{key}" if prefix else key
        # Same last-comment-wins rule as navigator.comment_along_path.
        comment = value.comment or inherited_comment
        if is_container(value):
            records.append(PropertyRecord(name=key, path=path, comment=comment))
            _collect(value, prefix=path, inherited_comment=comment, records=records)
        else:
            records.append(
                PropertyRecord(
                    name=key,
                    path=path,
                    comment=comment,
                    value=to_plain(value),
                    has_value=True,
                )
            )
