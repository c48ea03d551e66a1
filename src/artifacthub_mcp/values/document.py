"""Single-pass YAML tree carrying resolved values and leading comments."""

from __future__ import annotations

from dataclasses import dataclass

import yaml
from yaml.constructor import SafeConstructor
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode


class ValuesParseError(Exception):
    """Raised when a values document is not a usable YAML document."""


@dataclass(slots=True, frozen=True)
class YamlNull:
    """Explicit or implicit null."""

    comment: str | None = None


@dataclass(slots=True, frozen=True)
class YamlScalar:
    """Resolved scalar value (str, int, float, bool, date...)."""

    value: object
    comment: str | None = None


@dataclass(slots=True, frozen=True)
class YamlSequence:
    """Ordered list of child nodes."""

    items: tuple[YamlNode, ...]
    comment: str | None = None


@dataclass(slots=True, frozen=True)
class YamlMapping:
    """Key/value entries in declaration order."""

    entries: dict[str, YamlNode]
    comment: str | None = None


YamlNode = YamlNull | YamlScalar | YamlSequence | YamlMapping


def parse_values(text: str) -> YamlNode:
    """Parse YAML text into a comment-carrying tree; empty input is null."""
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as error:
        raise ValuesParseError(str(error)) from error
    if root is None:
        return YamlNull()
    builder = _TreeBuilder(text.split("\n"))
    return builder.build(root, comment=None)


def is_container(node: YamlNode) -> bool:
    """Return True for sequences and mappings."""
    return isinstance(node, (YamlSequence, YamlMapping))


def children(node: YamlNode) -> list[tuple[str, YamlNode]]:
    """Return (key, child) pairs; sequences are keyed by decimal index."""
    if isinstance(node, YamlMapping):
        return list(node.entries.items())
    if isinstance(node, YamlSequence):
        return [(str(index), item) for index, item in enumerate(node.items)]
    return []


def child(node: YamlNode, segment: str) -> YamlNode | None:
    """Return the child addressed by one path segment, if any."""
    if isinstance(node, YamlMapping):
        return node.entries.get(segment)
    if isinstance(node, YamlSequence):
        index = _sequence_index(segment)
        if index is None or index >= len(node.items):
            return None
        return node.items[index]
    return None


def to_plain(node: YamlNode) -> object:
    """Convert a tree back into plain Python containers and scalars."""
    if isinstance(node, YamlMapping):
        return {key: to_plain(value) for key, value in node.entries.items()}
    if isinstance(node, YamlSequence):
        return [to_plain(item) for item in node.items]
    if isinstance(node, YamlScalar):
        return node.value
    return None


class _TreeBuilder:
    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._constructor = SafeConstructor()
        self._active: set[int] = set()
        # Lines inside multi-line scalars; a '#' there is content, not a comment.
        self._scalar_lines: set[int] = set()

    def build(self, node: Node, comment: str | None) -> YamlNode:
        if isinstance(node, ScalarNode):
            self._claim_scalar_lines(node)
            value = self._scalar_value(node)
            if value is None:
                return YamlNull(comment=comment)
            return YamlScalar(value=value, comment=comment)

        if id(node) in self._active:
            raise ValuesParseError("Recursive YAML aliases are not supported.")
        self._active.add(id(node))
        try:
            if isinstance(node, SequenceNode):
                items = tuple(
                    self.build(item, self._leading_comment(item)) for item in node.value
                )
                return YamlSequence(items=items, comment=comment)
            if isinstance(node, MappingNode):
                entries: dict[str, YamlNode] = {}
                for key_node, value_node in node.value:
                    key = self._key_text(key_node)
                    entries[key] = self.build(value_node, self._leading_comment(key_node))
                return YamlMapping(entries=entries, comment=comment)
        finally:
            self._active.discard(id(node))
        raise ValuesParseError(f"Unsupported YAML node: {type(node).__name__}")

    def _scalar_value(self, node: ScalarNode) -> object:
        if node.tag not in SafeConstructor.yaml_constructors:
            return node.value
        try:
            return self._constructor.construct_object(node, deep=True)
        except yaml.YAMLError as error:
            raise ValuesParseError(str(error)) from error

    def _claim_scalar_lines(self, node: ScalarNode) -> None:
        first = node.start_mark.line + 1
        last = node.end_mark.line if node.end_mark.column > 0 else node.end_mark.line - 1
        self._scalar_lines.update(range(first, last + 1))

    def _key_text(self, key_node: Node) -> str:
        if isinstance(key_node, ScalarNode):
            return key_node.value
        return str(to_plain(self.build(key_node, comment=None)))

    def _leading_comment(self, node: Node) -> str | None:
        """Collect the comment block directly above a node that starts its line."""
        line_index = node.start_mark.line
        if line_index >= len(self._lines):
            return None
        prefix = self._lines[line_index][: node.start_mark.column]
        if prefix.strip(" \t-"):
            return None
        collected: list[str] = []
        cursor = line_index - 1
        while cursor >= 0 and cursor not in self._scalar_lines:
            stripped = self._lines[cursor].strip()
            if not stripped.startswith("#"):
                break
            collected.append(_comment_text(stripped))
            cursor -= 1
        if not collected:
            return None
        collected.reverse()
        return "\n".join(collected)


def _comment_text(stripped_line: str) -> str:
    text = stripped_line[1:]
    if text.startswith(" "):
        return text[1:]
    return text


def _sequence_index(segment: str) -> int | None:
    """Parse a canonical decimal index; '01' and non-ASCII digits are not indexes."""
    if not segment.isascii() or not segment.isdigit():
        return None
    index = int(segment)
    if str(index) != segment:
        return None
    return index
