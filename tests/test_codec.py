from __future__ import annotations

import pytest
import yaml

from flatcompose.codec import parse, serialize
from flatcompose.models import ParseError
from flatcompose.tree import MappingNode, ScalarNode, SequenceNode


def test_parse_keeps_key_order_and_scalar_tags() -> None:
    tree = parse("zeta: 1\nalpha: two\nmid: '3'\n")

    assert isinstance(tree, MappingNode)
    assert tree.keys() == ["zeta", "alpha", "mid"]
    assert tree["zeta"] == ScalarNode("1", tag="tag:yaml.org,2002:int")
    assert tree["alpha"] == ScalarNode("two")
    assert tree["mid"] == ScalarNode("3", style="'")


def test_empty_document_parses_to_empty_mapping() -> None:
    assert parse("") == MappingNode()
    assert parse("# only a comment\n") == MappingNode()


def test_aliases_are_expanded_into_copies() -> None:
    tree = parse("base: &b [x]\nother: *b\n")

    assert isinstance(tree, MappingNode)
    assert tree["other"] == SequenceNode((ScalarNode("x"),))


def test_malformed_text_raises_parse_error_naming_source() -> None:
    with pytest.raises(ParseError, match="Failed parsing YAML 'compose.yaml'"):
        parse("services: [unclosed\n", source="compose.yaml")


def test_multiple_documents_are_rejected() -> None:
    with pytest.raises(ParseError):
        parse("a: 1\n---\nb: 2\n")


def test_non_scalar_keys_are_rejected() -> None:
    with pytest.raises(ParseError, match="mapping keys must be scalars"):
        parse("? [a, b]\n: value\n")


def test_serialize_emits_block_style_and_preserves_quoting() -> None:
    text = serialize(parse("version: '3'\nports: [80, 443]\nname: web\n"))

    assert text == "version: '3'\nports:\n- 80\n- 443\nname: web\n"


def test_serialize_round_trips_its_own_output() -> None:
    source = """
web:
  image: nginx:1.25
  environment:
    DEBUG: 'false'
    WORKERS: 4
  command: >
    serve --port 80
"""
    once = serialize(parse(source))

    assert serialize(parse(once)) == once


def test_quoted_keys_keep_their_string_tag() -> None:
    tree = parse("'on': x\n'80': y\n'true': z\n8080: w\n")

    assert isinstance(tree, MappingNode)
    keys = [key for key, _ in tree.items]
    assert keys[0] == ScalarNode("on", style="'")
    assert keys[1] == ScalarNode("80", style="'")
    assert keys[3] == ScalarNode("8080", tag="tag:yaml.org,2002:int")
    assert tree["80"] == ScalarNode("y")


def test_serialize_quotes_keys_that_would_resolve_to_other_types() -> None:
    text = serialize(parse("'on': x\n\"80\": y\n'true': z\nplain: w\n"))

    assert text == "'on': x\n\"80\": y\n'true': z\nplain: w\n"
    assert yaml.safe_load(text) == {"on": "x", "80": "y", "true": "z", "plain": "w"}


def test_serialize_can_emit_document_start_marker() -> None:
    assert serialize(parse("web: x\n"), explicit_start=True) == "---\nweb: x\n"
