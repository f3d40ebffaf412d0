# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Re-serialize YAML documents with a fixed indentation and line width.

The document is composed into PyYAML's node graph and written back from that
graph, never through Python objects, so every scalar keeps its source text,
tag and quoting. Collections are always written in block style. Comments are
carried across by :mod:`.comments`.
"""

import io
import logging
from typing import Dict, Optional, Tuple

import yaml

from ..logconfig import DocumentContext
from . import comments
from .prompt_blocks import extract, restore

LOGGER = logging.getLogger(__name__)

DEFAULT_INDENT = 2
UNLIMITED_WIDTH = -1


class FormatError(ValueError):
    """Raised when a document cannot be formatted."""


class _SourceLoader(yaml.SafeLoader):
    """Composer that remembers anchor names and an explicit ``---``."""

    def __init__(self, stream):
        super().__init__(stream)
        self.anchor_names: Dict[yaml.Node, str] = {}
        self.explicit_start = False

    def compose_document(self):
        self.explicit_start = bool(self.peek_event().explicit)
        return super().compose_document()

    def compose_node(self, parent, index):
        event = self.peek_event()
        node = super().compose_node(parent, index)
        if not isinstance(event, yaml.AliasEvent) and event.anchor is not None:
            self.anchor_names[node] = event.anchor
        return node


class _NodeDumper(yaml.SafeDumper):
    """Serializer that keeps source anchor names and plain tagged scalars."""

    def __init__(self, stream, anchor_names: Optional[Dict[yaml.Node, str]] = None, **kwargs):
        super().__init__(stream, **kwargs)
        self.anchor_names = anchor_names or {}

    def anchor_node(self, node):
        super().anchor_node(node)
        if self.anchors.get(node) is None and node in self.anchor_names:
            self.anchors[node] = self.anchor_names[node]

    def generate_anchor(self, node):
        return self.anchor_names.get(node) or super().generate_anchor(node)

    def choose_scalar_style(self):
        style = super().choose_scalar_style()
        # An explicitly tagged plain scalar such as ``!include a.yml`` stays plain.
        if style == "'" and self.event.style is None and not self.event.implicit[0]:
            analysis = self.analysis
            allowed = analysis.allow_flow_plain if self.flow_level else analysis.allow_block_plain
            if allowed and not (self.simple_key_context and (analysis.empty or analysis.multiline)):
                return ""
        return style


def _compose(text: str) -> Tuple[Optional[yaml.Node], _SourceLoader]:
    loader = _SourceLoader(text)
    try:
        return loader.get_single_node(), loader
    finally:
        loader.dispose()


def _serialize(node: yaml.Node, loader: _SourceLoader, indent: int, width: int) -> str:
    stream = io.StringIO()
    dumper = _NodeDumper(
        stream,
        anchor_names=loader.anchor_names,
        allow_unicode=True,
        indent=indent,
        width=float("inf") if width < 0 else width,
        explicit_start=loader.explicit_start,
    )
    try:
        dumper.open()
        dumper.serialize(node)
        dumper.close()
    finally:
        dumper.dispose()
    return stream.getvalue()


def format_text(text: str, indent: int = DEFAULT_INDENT, width: int = UNLIMITED_WIDTH) -> str:
    """Format *text*, leaving prompt blocks exactly as written.

    Args:
        text: YAML source.
        indent: Spaces per nesting level.
        width: Preferred maximum line width, -1 for no wrapping.

    Raises:
        FormatError: if the text is not valid YAML.
    """
    extracted = extract(text)
    try:
        root, loader = _compose(extracted.text)
        if root is None:
            return text

        remarks = comments.collect(extracted.text, root)
        for node in comments.iter_nodes(root):
            if not isinstance(node, yaml.ScalarNode):
                node.flow_style = False

        serialized = _serialize(root, loader, indent, width)
        output, _ = _compose(serialized)
    except yaml.YAMLError as exc:
        raise FormatError(f"Invalid YAML format. {exc}") from exc

    serialized = comments.apply(serialized, output, comments.pair_nodes(root, output), remarks)
    formatted = restore(serialized, extracted.blocks)
    LOGGER.debug(
        "Formatted document with %d comment(s) and %d protected prompt block(s)",
        len(remarks),
        len(extracted.blocks),
    )
    return formatted


def format_file(
    path: str,
    indent: int = DEFAULT_INDENT,
    width: int = UNLIMITED_WIDTH,
    check: bool = False,
) -> bool:
    """Format the file at *path* in place.

    Returns True if the formatted text differs from the file contents. With
    ``check=True`` the file is left untouched.
    """
    with DocumentContext(path):
        with open(path, encoding="utf-8") as fh:
            original = fh.read()

        formatted = format_text(original, indent=indent, width=width)
        changed = formatted != original
        if changed and not check:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(formatted)
            LOGGER.info("Reformatted %s", path)
        return changed
