"""Values document parsing, navigation and flattening."""

from .document import (
    ValuesParseError,
    YamlMapping,
    YamlNode,
    YamlNull,
    YamlScalar,
    YamlSequence,
    child,
    children,
    is_container,
    parse_values,
    to_plain,
)
from .flatten import PropertyRecord, flatten
from .navigator import Resolution, comment_along_path, resolve, split_path

__all__ = [
    "PropertyRecord",
    "Resolution",
    "ValuesParseError",
    "YamlMapping",
    "YamlNode",
    "YamlNull",
    "YamlScalar",
    "YamlSequence",
    "child",
    "children",
    "comment_along_path",
    "flatten",
    "is_container",
    "parse_values",
    "resolve",
    "split_path",
    "to_plain",
]
