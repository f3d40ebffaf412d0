# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Checks applied to a single node definition.

Every check appends to the same diagnostic list; a failing check never stops
the ones after it. The validator only reads the document.
"""

import re
from typing import List, Optional, Sequence

from . import contracts
from .diagnostics import Diagnostic, Range, Severity
from .document import YamlValue

_LEADING_WS_RE = re.compile(r"^[ \t]+")

PLACEHOLDER_ITEM = "-"


def is_empty_item(item: YamlValue) -> bool:
    if item.is_blank:
        return True
    return item.is_string and item.value.strip() == PLACEHOLDER_ITEM


class NodeValidator:
    """Validates one node mapping against the contract for its declared type."""

    def __init__(self, source_lines: Sequence[str]):
        """
        Args:
            source_lines: Raw document lines, used for the indentation check.
        """
        self.source_lines = source_lines

    def validate(
        self, name: str, node: YamlValue, where: Range, context: Optional[str] = None
    ) -> List[Diagnostic]:
        """Run every check for the node *name* and return the diagnostics."""
        diagnostics: List[Diagnostic] = []

        def error(message: str):
            diagnostics.append(Diagnostic(message, Severity.ERROR, where, context))

        def warning(message: str, range: Range = where):
            diagnostics.append(Diagnostic(message, Severity.WARNING, range, context))

        self._check_required_fields(name, node, error, warning)
        self._check_outputs(name, node, error)
        self._check_next(name, node, error)
        self._check_empty_values(name, node, warning)
        self._check_indentation(where.line, warning)
        return diagnostics

    # ── 1 + 2: contracts ──────────────────────────────────────────────────

    def _check_required_fields(self, name: str, node: YamlValue, error, warning):
        node_type = node.get("type")
        if not node_type.is_truthy:
            return

        type_text = node_type.text
        fields = contracts.required_fields(type_text) if node_type.is_scalar else None
        if fields is None:
            warning(f'Node "{name}" has unknown type: {type_text}')
            return

        def missing(field: str):
            error(f'Node "{name}" of type "{type_text}" is missing required field: {field}')

        for field in fields:
            value = node.get(field)
            # Collections always render as "{}"/"[]", so only scalars can be blank.
            if value.is_blank:
                missing(field)

        kind = contracts.normalize_type(type_text)
        if kind == contracts.AGENT:
            self._check_agent_inputs(node.get("inputs"), missing)
        elif kind in contracts.CONTAINER_TYPES:
            self._check_container_inputs(kind, node.get("inputs"), missing)
        elif kind == contracts.IFELSE:
            self._check_conditions(name, type_text, node.get("conditions"), error, missing)

    def _check_agent_inputs(self, inputs: YamlValue, missing):
        if not inputs.is_truthy:
            return

        agent_path = inputs.get("agent_path")
        if not agent_path.is_truthy or agent_path.is_blank:
            missing("inputs.agent_path")

        if contracts.requires_init_kwargs(agent_path.text):
            if not inputs.get("init_kwargs").is_truthy:
                missing("inputs.init_kwargs")

        if not any(inputs.get(field).is_truthy for field in contracts.CALL_FIELDS):
            missing(f"inputs.{contracts.CALL_FIELDS[0]}")

    def _check_container_inputs(self, kind: str, inputs: YamlValue, missing):
        if not inputs.is_truthy:
            return

        if kind == contracts.ITERATOR:
            iterable = inputs.get("iterable")
            if not iterable.is_truthy or iterable.is_blank:
                missing("inputs.iterable")

        subgraph = inputs.get("subgraph")
        if not subgraph.is_truthy:
            missing("inputs.subgraph")
        elif not subgraph.get("nodes").is_truthy:
            missing("inputs.subgraph.nodes")

    def _check_conditions(self, name: str, type_text: str, conditions: YamlValue, error, missing):
        if not conditions.is_truthy:
            return

        branches = conditions.as_sequence()
        if branches is None:
            error(
                f'Node "{name}" of type "{type_text}" has invalid conditions structure '
                "- should be an array"
            )
            return

        if not any(branch.get("if").is_truthy for branch in branches):
            missing("conditions.if")

    # ── 3: shapes ─────────────────────────────────────────────────────────

    def _check_outputs(self, name: str, node: YamlValue, error):
        if not node.has("outputs"):
            return
        outputs = node.get("outputs")

        if outputs.is_null:
            error(f"Node \"{name}\": 'outputs' field is empty")
        elif outputs.is_scalar:
            error(f"Node \"{name}\": 'outputs' must be an array or object")
        else:
            items = outputs.elements if outputs.is_sequence else [v for _, v in outputs.items()]
            if not items:
                error(f"Node \"{name}\": 'outputs' field is empty")
            elif any(is_empty_item(item) for item in items):
                error(f"Node \"{name}\": 'outputs' field contains empty items")

    def _check_next(self, name: str, node: YamlValue, error):
        if not node.has("next"):
            return
        next_value = node.get("next")

        if next_value.is_null:
            error(f"Node \"{name}\": 'next' field is empty")
        elif next_value.is_string:
            if is_empty_item(next_value):
                error(f"Node \"{name}\": 'next' field is empty")
        elif next_value.is_sequence:
            if not next_value.elements:
                error(f"Node \"{name}\": 'next' field is empty")
            elif any(is_empty_item(item) for item in next_value.elements):
                error(f"Node \"{name}\": 'next' field contains empty items")
        else:
            error(f"Node \"{name}\": 'next' must be an array or string")

    # ── 4 + 5: hygiene ────────────────────────────────────────────────────

    def _check_empty_values(self, name: str, node: YamlValue, warning):
        for key, value in node.items():
            if value.is_null or (value.is_string and value.value == ""):
                warning(f"Node \"{name}\": '{key}' has empty value")

    def _check_indentation(self, line: int, warning):
        if line < 0 or line >= len(self.source_lines):
            return
        match = _LEADING_WS_RE.match(self.source_lines[line])
        if match and "\t" in match.group(0) and " " in match.group(0):
            warning("Mixed tab and space indentation", Range.at(line, 0, len(match.group(0))))
