# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Structural linter for workflow graph documents.

Public API
----------
lint_text           Lint YAML text and return a LintResult.
lint_file           Read and lint a file; read failures become a diagnostic.
LintResult          Diagnostics for one document.
Diagnostic          One message with severity and source range.
Severity            ERROR or WARNING.
parse_document      Parse YAML into the YamlValue tagged union.
GraphWalker         Recursive traversal of ``nodes`` and nested subgraphs.
NodeValidator       Per-node contract, shape and hygiene checks.
resolve_references  Report references to undefined nodes.
suggest             Closest defined name for a misspelled reference.
"""

from .diagnostics import Diagnostic, LintResult, Range, Severity
from .document import ABSENT, DocumentSyntaxError, Kind, YamlValue, parse_document
from .engine import lint_file, lint_text
from .node_validator import NodeValidator
from .resolver import resolve_references
from .suggestions import suggest
from .walker import DefinedNode, GraphWalker, NodeReference, WalkState

__all__ = [
    "ABSENT",
    "DefinedNode",
    "Diagnostic",
    "DocumentSyntaxError",
    "GraphWalker",
    "Kind",
    "LintResult",
    "NodeReference",
    "NodeValidator",
    "Range",
    "Severity",
    "WalkState",
    "YamlValue",
    "lint_file",
    "lint_text",
    "parse_document",
    "resolve_references",
    "suggest",
]
