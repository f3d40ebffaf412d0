# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Carry comments across a compose/serialize round trip.

PyYAML's scanner throws comments away, so they are read from the source lines
and pinned to the node that owns their line. Once the document has been
serialized again, each comment is written back beside the new position of its
node: own-line comments above it, trailing comments at the end of its line.
Comments after the last node stay at the end of the document.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

import yaml

_TRAILING_RE = re.compile(r"(?<=[ \t])#")
_BLOCK_STYLES = ("|", ">")


@dataclass
class Comment:
    text: str  # from "#" to the end of the line
    anchor: Optional[yaml.Node]  # None for comments after the last node
    trailing: bool = False
    gap: str = " "  # whitespace between the content and a trailing "#"


def iter_nodes(root: Optional[yaml.Node]) -> List[yaml.Node]:
    """Every node under *root*, mapping keys included, in document order."""
    found: List[yaml.Node] = []
    seen: Set[int] = set()

    def _visit(node: yaml.Node):
        if id(node) in seen:
            return
        seen.add(id(node))
        found.append(node)
        if isinstance(node, yaml.SequenceNode):
            for item in node.value:
                _visit(item)
        elif isinstance(node, yaml.MappingNode):
            for key, value in node.value:
                _visit(key)
                _visit(value)

    if root is not None:
        _visit(root)
    return found


def pair_nodes(source: yaml.Node, output: yaml.Node) -> Dict[yaml.Node, yaml.Node]:
    """Match the nodes of two trees with the same shape."""
    pairs: Dict[yaml.Node, yaml.Node] = {}

    def _visit(src: yaml.Node, out: yaml.Node):
        if src in pairs:
            return
        pairs[src] = out
        if isinstance(src, yaml.SequenceNode):
            for s, o in zip(src.value, out.value):
                _visit(s, o)
        elif isinstance(src, yaml.MappingNode):
            for (sk, sv), (ok, ov) in zip(src.value, out.value):
                _visit(sk, ok)
                _visit(sv, ov)

    _visit(source, output)
    return pairs


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


class _LineIndex:
    """Where nodes start, end and span on each line of a document."""

    def __init__(self, lines: List[str], nodes: List[yaml.Node]):
        self.owners: Dict[int, yaml.Node] = {}
        self.content_end: Dict[int, int] = {}
        self.covered: Set[int] = set()
        self.open_scalar: Dict[int, yaml.ScalarNode] = {}

        for node in nodes:
            start, end = node.start_mark, node.end_mark
            owner = self.owners.get(start.line)
            if owner is None or start.column < owner.start_mark.column:
                self.owners[start.line] = node

            is_scalar = isinstance(node, yaml.ScalarNode)
            if is_scalar or node.flow_style:
                if end.line == start.line or not self._ends_on_indent(lines, node):
                    current = self.content_end.get(end.line, 0)
                    self.content_end[end.line] = max(current, end.column)
            if not is_scalar or end.line == start.line:
                continue

            self.open_scalar[start.line] = node
            self.covered.update(range(start.line + 1, end.line))
            if node.style in _BLOCK_STYLES and not self._ends_on_indent(lines, node):
                self.covered.add(end.line)

    @staticmethod
    def _ends_on_indent(lines: List[str], node: yaml.Node) -> bool:
        # A block scalar ends where the next less-indented line begins.
        end = node.end_mark
        if end.line >= len(lines):
            return True
        return end.column <= _indent_width(lines[end.line])

    def trailing_search_start(self, line: int) -> Optional[int]:
        """Column after the last content on *line*, or None if it has none."""
        start = self.content_end.get(line, 0)
        scalar = self.open_scalar.get(line)
        if scalar is not None:
            if scalar.style not in _BLOCK_STYLES:
                return None
            start = max(start, scalar.start_mark.column + 1)
        return start


def collect(text: str, root: yaml.Node) -> List[Comment]:
    """Find the comments of *text* and pin each one to a node of *root*."""
    lines = text.split("\n")
    nodes = iter_nodes(root)
    index = _LineIndex(lines, nodes)
    ordered = sorted(nodes, key=lambda n: (n.start_mark.line, n.start_mark.column))

    def _next_node(line: int) -> Optional[yaml.Node]:
        for node in ordered:
            if node.start_mark.line >= line:
                return node
        return None

    comments: List[Comment] = []
    pending: List[str] = []

    def _flush(anchor: Optional[yaml.Node]):
        comments.extend(Comment(text, anchor) for text in pending)
        pending.clear()

    for number, line in enumerate(lines):
        stripped = line.strip()
        if number in index.covered or not stripped:
            continue

        if stripped.startswith("#") and index.content_end.get(number, 0) <= _indent_width(line):
            pending.append(stripped)
            continue

        owner = index.owners.get(number)
        if pending:
            _flush(owner or _next_node(number))

        search_from = index.trailing_search_start(number)
        match = _TRAILING_RE.search(line, search_from) if search_from is not None else None
        if match is None:
            continue

        remark = line[match.start():].rstrip()
        if owner is None:
            # Nothing starts on this line, such as a bare "-" or "---".
            comments.append(Comment(remark, _next_node(number + 1)))
            continue
        content = line[: match.start()].rstrip()
        comments.append(Comment(remark, owner, trailing=True, gap=line[len(content) : match.start()]))

    _flush(None)
    return comments


def apply(text: str, root: yaml.Node, pairs: Dict[yaml.Node, yaml.Node], comments: List[Comment]) -> str:
    """Write *comments* into *text*, the serialized form of *root*.

    *pairs* maps the source nodes the comments are pinned to onto the nodes
    of *root*.
    """
    if not comments:
        return text

    lines = text.split("\n")
    index = _LineIndex(lines, iter_nodes(root))

    def _settle(line: int) -> int:
        # A trailing comment cannot go inside a flow scalar spread over lines.
        scalar = index.open_scalar.get(line)
        while scalar is not None and scalar.style not in _BLOCK_STYLES:
            line = scalar.end_mark.line
            scalar = index.open_scalar.get(line)
        return line

    above: Dict[int, List[str]] = {}
    after: Dict[int, str] = {}
    tail: List[str] = []
    for comment in comments:
        target = pairs.get(comment.anchor) if comment.anchor is not None else None
        if target is None:
            tail.append(comment.text)
        elif comment.trailing:
            line = _settle(target.start_mark.line)
            after[line] = after.get(line, "") + comment.gap + comment.text
        else:
            above.setdefault(target.start_mark.line, []).append(comment.text)

    out: List[str] = []
    for number, line in enumerate(lines):
        indent = line[: _indent_width(line)]
        out.extend(indent + remark for remark in above.get(number, []))
        out.append(line + after.get(number, ""))

    # The serialized text ends with a newline, so the last element is empty.
    return "\n".join(out[:-1] + tail + out[-1:])
