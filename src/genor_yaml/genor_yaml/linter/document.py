# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Normalise PyYAML's node tree into a small tagged union with source positions.

Parsing happens once, through :func:`yaml.compose`, and every node is turned
into a :class:`YamlValue` of kind MAPPING, SEQUENCE, SCALAR or ABSENT.
Validator code only ever talks to ``YamlValue``; missing keys come back as
:data:`ABSENT` instead of raising, so lookups can be chained freely::

    nested = node.get("inputs").get("subgraph").get("nodes")
    if nested.is_mapping:
        ...
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml
from yaml.constructor import ConstructorError, SafeConstructor

_LEADING_WS_RE = re.compile(r"^[ \t]+")


class Kind(Enum):
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    SCALAR = "scalar"
    ABSENT = "absent"


class DocumentSyntaxError(ValueError):
    """Raised when the text is not well-formed YAML."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


@dataclass(eq=False)
class Entry:
    """One ``key: value`` pair of a mapping, in document order."""

    key: str
    value: "YamlValue"
    line: int
    column: int


@dataclass(eq=False)
class YamlValue:
    kind: Kind
    value: Any = None  # resolved python value, scalars only
    raw: str = ""  # scalar source text without quotes
    entries: List[Entry] = field(default_factory=list)
    elements: List["YamlValue"] = field(default_factory=list)
    flow_style: bool = False
    style: Optional[str] = None  # scalar style from the source, None when plain
    line: Optional[int] = None
    column: Optional[int] = None

    # ── kind queries ──────────────────────────────────────────────────────

    @property
    def is_mapping(self) -> bool:
        return self.kind == Kind.MAPPING

    @property
    def is_sequence(self) -> bool:
        return self.kind == Kind.SEQUENCE

    @property
    def is_scalar(self) -> bool:
        return self.kind == Kind.SCALAR

    @property
    def is_absent(self) -> bool:
        return self.kind == Kind.ABSENT

    @property
    def is_null(self) -> bool:
        return self.is_scalar and self.value is None

    @property
    def is_string(self) -> bool:
        return self.is_scalar and isinstance(self.value, str)

    # ── value queries ─────────────────────────────────────────────────────

    @property
    def is_blank(self) -> bool:
        """Absent, null, or a whitespace-only string."""
        if self.is_absent or self.is_null:
            return True
        return self.is_string and self.value.strip() == ""

    @property
    def is_truthy(self) -> bool:
        """Collections are always truthy; scalars follow python truthiness."""
        if self.is_absent:
            return False
        if self.is_scalar:
            return bool(self.value)
        return True

    @property
    def text(self) -> str:
        """Textual form used in messages."""
        if self.is_scalar:
            return "" if self.value is None else self.raw
        if self.is_mapping:
            return "{}" if not self.entries else "{...}"
        if self.is_sequence:
            return "[]" if not self.elements else "[...]"
        return ""

    def get(self, key: str) -> "YamlValue":
        """Return the value for *key*, or :data:`ABSENT`. Later duplicates win."""
        if not self.is_mapping:
            return ABSENT
        for entry in reversed(self.entries):
            if entry.key == key:
                return entry.value
        return ABSENT

    def entry(self, key: str) -> Optional[Entry]:
        if not self.is_mapping:
            return None
        for entry in reversed(self.entries):
            if entry.key == key:
                return entry
        return None

    def has(self, key: str) -> bool:
        return self.entry(key) is not None

    def items(self) -> Iterator[Tuple[str, "YamlValue"]]:
        for entry in self.entries:
            yield entry.key, entry.value

    def as_sequence(self) -> Optional[List["YamlValue"]]:
        return list(self.elements) if self.is_sequence else None

    def __repr__(self) -> str:
        return f"YamlValue({self.kind.value}, {self.text!r}, line={self.line})"


ABSENT = YamlValue(Kind.ABSENT)


def expand_leading_tabs(text: str, tab_size: int = 2) -> str:
    """Expand tabs in each line's leading whitespace, keeping line numbers intact."""

    def _expand(match: "re.Match[str]") -> str:
        return match.group(0).expandtabs(tab_size)

    lines = text.split("\n")
    return "\n".join(_LEADING_WS_RE.sub(_expand, line, count=1) for line in lines)


class _Normaliser:
    def __init__(self):
        self._constructor = SafeConstructor()
        self._active: Dict[int, bool] = {}

    def convert(self, node: Optional[yaml.Node]) -> YamlValue:
        if node is None:
            return ABSENT
        if id(node) in self._active:
            raise DocumentSyntaxError(
                "Recursive alias is not supported", node.start_mark.line
            )
        self._active[id(node)] = True
        try:
            if isinstance(node, yaml.MappingNode):
                return self._mapping(node)
            if isinstance(node, yaml.SequenceNode):
                return YamlValue(
                    Kind.SEQUENCE,
                    elements=[self.convert(item) for item in node.value],
                    flow_style=bool(node.flow_style),
                    line=node.start_mark.line,
                    column=node.start_mark.column,
                )
            return self._scalar(node)
        finally:
            del self._active[id(node)]

    def _mapping(self, node: yaml.MappingNode) -> YamlValue:
        self._constructor.flatten_mapping(node)
        entries = []
        for key_node, value_node in node.value:
            if isinstance(key_node, yaml.ScalarNode):
                key_value = self._construct(key_node)
                key = "" if key_value is None else str(key_value)
            else:
                key = str(self.convert(key_node).text)
            entries.append(
                Entry(
                    key=key,
                    value=self.convert(value_node),
                    line=key_node.start_mark.line,
                    column=key_node.start_mark.column,
                )
            )
        return YamlValue(
            Kind.MAPPING,
            entries=entries,
            flow_style=bool(node.flow_style),
            line=node.start_mark.line,
            column=node.start_mark.column,
        )

    def _construct(self, node: yaml.ScalarNode) -> Any:
        try:
            return self._constructor.construct_object(node)
        except (ValueError, KeyError, TypeError, OverflowError, ConstructorError):
            # Well-formed scalars that the safe constructor rejects, such as
            # impossible dates or application tags, keep their source text.
            return node.value

    def _scalar(self, node: yaml.ScalarNode) -> YamlValue:
        return YamlValue(
            Kind.SCALAR,
            value=self._construct(node),
            raw=node.value,
            style=node.style,
            line=node.start_mark.line,
            column=node.start_mark.column,
        )


def parse_document(text: str, tab_size: int = 2) -> YamlValue:
    """Parse *text* into a :class:`YamlValue` tree.

    Returns :data:`ABSENT` for an empty document. Raises
    :class:`DocumentSyntaxError` for malformed YAML.
    """
    try:
        root = yaml.compose(expand_leading_tabs(text, tab_size), Loader=yaml.SafeLoader)
        return _Normaliser().convert(root)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        raise DocumentSyntaxError(str(exc), mark.line if mark is not None else None) from exc
