# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Depth-first traversal of a ``nodes`` mapping and its nested subgraphs."""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from . import contracts
from .diagnostics import Diagnostic, Range, Severity
from .document import Entry, YamlValue
from .node_validator import NodeValidator, is_empty_item

_LEADING_WS_RE = re.compile(r"^[ \t]*")


@dataclass
class DefinedNode:
    name: str
    qualified_name: str
    range: Range


@dataclass
class NodeReference:
    """A node name found in a ``next`` field."""

    name: str
    range: Range
    source: str  # qualified name of the node holding the ``next`` field


@dataclass
class WalkState:
    defined: List[DefinedNode] = field(default_factory=list)
    references: List[NodeReference] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def defined_names(self) -> Set[str]:
        return {d.name for d in self.defined}


class GraphWalker:
    """Validates every node of a graph and collects definitions and references.

    Nested definitions are recorded with a qualified name
    (``<container>.<key>``). References are collected as written, without any
    qualification.
    """

    def __init__(self, source_lines: Sequence[str], tab_size: int = 2):
        self.source_lines = source_lines
        self.tab_size = tab_size
        self.validator = NodeValidator(source_lines)

    def walk(self, nodes: YamlValue) -> WalkState:
        state = WalkState()
        self._walk(nodes, state, parent=None)
        return state

    def _walk(self, nodes: YamlValue, state: WalkState, parent: Optional[str]):
        seen: Set[str] = set()

        for entry in nodes.entries:
            name = entry.key
            qualified = f"{parent}.{name}" if parent else name
            where = self._key_range(entry)
            context = qualified if parent else None

            if name in seen:
                state.diagnostics.append(
                    Diagnostic(f"Duplicate node name: {qualified}", Severity.ERROR, where, context)
                )
            seen.add(name)
            state.defined.append(DefinedNode(name, qualified, where))

            node = entry.value
            if not node.is_mapping:
                state.diagnostics.append(
                    Diagnostic(
                        f'Node "{name}" has invalid structure', Severity.ERROR, where, context
                    )
                )
                continue

            state.diagnostics.extend(self.validator.validate(name, node, where, context))
            self._collect_references(node, qualified, state)

            node_type = node.get("type")
            nested = node.get("inputs").get("subgraph").get("nodes")
            if node_type.is_scalar and contracts.is_container(node_type.text):
                if nested.is_mapping:
                    self._walk(nested, state, parent=qualified)
                else:
                    state.diagnostics.append(
                        Diagnostic(
                            f'Node "{name}" has invalid or missing subgraph.nodes structure',
                            Severity.ERROR,
                            where,
                            context,
                        )
                    )
            elif nested.is_mapping:
                self._walk(nested, state, parent=qualified)

    def _collect_references(self, node: YamlValue, source: str, state: WalkState):
        next_value = node.get("next")
        if next_value.is_sequence:
            targets = next_value.elements
        else:
            targets = [next_value]

        for target in targets:
            # Blank and "-" placeholders are reported by the shape check instead.
            if not target.is_string or is_empty_item(target):
                continue
            state.references.append(
                NodeReference(
                    name=target.value,
                    range=self._value_range(target),
                    source=source,
                )
            )

    def _key_range(self, entry: Entry) -> Range:
        line = entry.line
        if 0 <= line < len(self.source_lines):
            raw = self.source_lines[line]
            start = len(_LEADING_WS_RE.match(raw).group(0))
            column = raw.find(entry.key, start)
            if column >= 0:
                return Range.at(line, column, len(entry.key))
        return Range.at(line, entry.column, len(entry.key))

    def _source_column(self, line: int, column: int) -> int:
        """Map a parser column back onto the raw line, undoing tab expansion."""
        if not 0 <= line < len(self.source_lines):
            return column
        indent = _LEADING_WS_RE.match(self.source_lines[line]).group(0)
        expanded = len(indent.expandtabs(self.tab_size))
        if column < expanded:
            return column
        return column - (expanded - len(indent))

    def _value_range(self, value: YamlValue) -> Range:
        line = value.line or 0
        column = self._source_column(line, value.column or 0)
        if value.style in ("'", '"'):
            column += 1
        return Range.at(line, column, len(value.raw))
