"""Linearise compose service definitions by inlining ``extends``."""

from flatcompose.codec import parse, serialize
from flatcompose.linearise import (
    linearise,
    linearise_file,
    linearise_tree,
    linearise_with_diagnostics,
)
from flatcompose.merge import combine, merge_service
from flatcompose.models import (
    ConfigError,
    DanglingReference,
    FileAccessError,
    FlatComposeError,
    ParseError,
)
from flatcompose.resolve import resolve_registry
from flatcompose.settings import LineariseSettings, load_settings
from flatcompose.tree import MappingNode, Node, ScalarNode, SequenceNode

__all__ = [
    "ConfigError",
    "DanglingReference",
    "FileAccessError",
    "FlatComposeError",
    "LineariseSettings",
    "MappingNode",
    "Node",
    "ParseError",
    "ScalarNode",
    "SequenceNode",
    "combine",
    "linearise",
    "linearise_file",
    "linearise_tree",
    "linearise_with_diagnostics",
    "load_settings",
    "merge_service",
    "parse",
    "resolve_registry",
    "serialize",
]
