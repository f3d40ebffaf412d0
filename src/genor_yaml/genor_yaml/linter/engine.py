# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Lint entry points.

``lint_text`` is a pure function: it parses the text, walks the graph and
returns a fresh :class:`LintResult`. Callers that keep diagnostics per
document simply replace the old result with the new one.
"""

import logging
import re
from typing import Optional

from ..logconfig import DocumentContext
from .diagnostics import LintResult, Range
from .document import DocumentSyntaxError, parse_document
from .resolver import resolve_references
from .walker import GraphWalker

LOGGER = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r?\n")


def lint_text(text: str, file: Optional[str] = None, tab_size: int = 2) -> LintResult:
    """Lint a graph document held in memory.

    Args:
        text: YAML source.
        file: Path reported with the diagnostics, if any.
        tab_size: Tab stop used to read tab-indented lines.

    Returns:
        LintResult with every diagnostic found, in traversal order followed
        by unresolved references.
    """
    result = LintResult(file=file)

    try:
        root = parse_document(text, tab_size)
    except DocumentSyntaxError as exc:
        result.add_error(f"YAML Syntax Error: {exc}")
        return result

    nodes_entry = root.entry("nodes")
    if nodes_entry is None or not nodes_entry.value.is_mapping:
        where = Range.at(nodes_entry.line, nodes_entry.column, 5) if nodes_entry else Range()
        result.add_error("Missing or invalid 'nodes' section", range=where)
        return result

    source_lines = _LINE_BREAK_RE.split(text)
    state = GraphWalker(source_lines, tab_size).walk(nodes_entry.value)
    result.extend(state.diagnostics)
    result.extend(resolve_references(state.references, state.defined))

    LOGGER.debug(
        "Linted %d node(s): %d error(s), %d warning(s)",
        len(state.defined),
        len(result.errors),
        len(result.warnings),
    )
    return result


def lint_file(path: str, tab_size: int = 2) -> LintResult:
    """Read *path* and lint it. Read failures become a single error."""
    with DocumentContext(path):
        try:
            with open(path, encoding="utf-8") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Cannot read %s: %s", path, exc)
            result = LintResult(file=path)
            result.add_error(f"Cannot read file: {exc}")
            return result
        return lint_text(text, file=path, tab_size=tab_size)
