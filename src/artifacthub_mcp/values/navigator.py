"""Dotted-path resolution over a parsed values tree."""

from __future__ import annotations

from dataclasses import dataclass

from artifacthub_mcp.values.document import YamlNode, child, to_plain

PATH_SEPARATOR = "."


@dataclass(slots=True, frozen=True)
class Resolution:
    """Outcome of resolving one dotted path."""

    path: str
    found: bool
    value: object
    comment: str | None


def split_path(path: str) -> list[str]:
    """Split a dotted path into its key segments."""
    return path.split(PATH_SEPARATOR)


def resolve(root: YamlNode, path: str) -> Resolution:
    """Resolve a dotted path to its value and the last comment seen on the way.

    An ancestor's comment is kept when deeper nodes carry none, so the comment
    is not necessarily the one of the final node. It is reported even when the
    walk stops before the end of the path.
    """
    comment: str | None = None
    current: YamlNode = root
    for segment in split_path(path):
        next_node = child(current, segment)
        if next_node is None:
            return Resolution(path=path, found=False, value=None, comment=comment)
        current = next_node
        if current.comment:
            comment = current.comment
    return Resolution(path=path, found=True, value=to_plain(current), comment=comment)


def comment_along_path(root: YamlNode, path: str) -> str | None:
    """Return the comment of the last commented node traversed by the path."""
    return resolve(root, path).comment
