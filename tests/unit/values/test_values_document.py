from __future__ import annotations

import datetime

import pytest

from artifacthub_mcp.values import (
    ValuesParseError,
    YamlMapping,
    YamlNull,
    YamlScalar,
    YamlSequence,
    parse_values,
    to_plain,
)

VALUES = """\
# Default values for demo.
# This is a YAML-formatted file.

# Number of replicas
replicaCount: 2
image:
  # Image repository
  # pulled from Docker Hub
  repository: nginx
  tag: "1.0"
ports:
  # first port
  - 80
  - 443
empty:
"""


def test_parse_builds_tagged_variants_in_declaration_order() -> None:
    root = parse_values(VALUES)

    assert isinstance(root, YamlMapping)
    assert list(root.entries) == ["replicaCount", "image", "ports", "empty"]
    assert root.entries["replicaCount"] == YamlScalar(value=2, comment="Number of replicas")
    assert isinstance(root.entries["image"], YamlMapping)
    assert isinstance(root.entries["ports"], YamlSequence)
    assert isinstance(root.entries["empty"], YamlNull)


def test_leading_comment_block_is_attached_to_following_key() -> None:
    image = parse_values(VALUES).entries["image"]

    assert isinstance(image, YamlMapping)
    assert image.comment is None
    assert image.entries["repository"].comment == "Image repository\npulled from Docker Hub"
    assert image.entries["tag"].comment is None


def test_blank_line_separates_file_header_from_first_key() -> None:
    root = parse_values("# header\n\nreplicaCount: 1\n")

    assert isinstance(root, YamlMapping)
    assert root.entries["replicaCount"].comment is None


def test_sequence_items_carry_their_own_comments() -> None:
    ports = parse_values(VALUES).entries["ports"]

    assert isinstance(ports, YamlSequence)
    assert ports.items[0].comment == "first port"
    assert ports.items[1].comment is None


def test_flow_mapping_keys_do_not_inherit_line_comment() -> None:
    root = parse_values("# outer\nresources: {cpu: 1, memory: 2}\n")

    assert isinstance(root, YamlMapping)
    resources = root.entries["resources"]
    assert resources.comment == "outer"
    assert isinstance(resources, YamlMapping)
    assert resources.entries["cpu"].comment is None
    assert resources.entries["memory"].comment is None


def test_quoted_scalars_stay_strings() -> None:
    root = parse_values(VALUES)

    assert to_plain(root)["image"] == {"repository": "nginx", "tag": "1.0"}


def test_duplicate_keys_keep_last_value_in_first_position() -> None:
    root = parse_values("a: 1\nb: 2\na: 3\n")

    assert to_plain(root) == {"a": 3, "b": 2}
    assert list(to_plain(root)) == ["a", "b"]


def test_empty_document_is_null() -> None:
    assert parse_values("") == YamlNull()
    assert parse_values("# only a comment\n") == YamlNull()


def test_timestamps_resolve_to_dates() -> None:
    root = parse_values("released: 2024-01-02\n")

    assert to_plain(root) == {"released": datetime.date(2024, 1, 2)}


def test_unknown_tags_fall_back_to_raw_text() -> None:
    root = parse_values("secret: !vault abc\n")

    assert to_plain(root) == {"secret": "abc"}


def test_invalid_yaml_raises_values_parse_error() -> None:
    with pytest.raises(ValuesParseError):
        parse_values("a: [1, 2\n")


def test_hash_lines_inside_block_scalars_stay_content() -> None:
    root = parse_values(
        "initScript: |\n"
        "  #!/bin/bash\n"
        "  # install deps\n"
        "replicaCount: 1\n"
        "folded: >\n"
        "  # not a comment\n"
        "# Real comment\n"
        "port: 80\n"
    )

    assert isinstance(root, YamlMapping)
    assert root.entries["initScript"] == YamlScalar(value="#!/bin/bash\n# install deps\n")
    assert root.entries["replicaCount"].comment is None
    assert root.entries["port"].comment == "Real comment"
