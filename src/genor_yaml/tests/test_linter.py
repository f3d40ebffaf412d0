# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Lint behaviour on whole graph documents."""

from typing import List

import pytest

from genor_yaml.linter import (
    Diagnostic,
    GraphWalker,
    LintResult,
    Range,
    Severity,
    lint_file,
    lint_text,
    parse_document,
    suggest,
)
from genor_yaml.linter.suggestions import close_matches


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _agent(key: str, extra: str = "", indent: str = "  ") -> str:
    """An agent node that passes every check, plus *extra* node-level lines."""
    body = [
        f"{key}:",
        "  type: agent",
        f"  name: {key.title()}",
        "  inputs:",
        "    agent_path: pkg.agents.Summarizer",
        "    init_kwargs: {model: small}",
        "    call_kwargs: {}",
        "  outputs: [text]",
    ]
    body.extend(f"  {line}" for line in extra.splitlines())
    return "".join(f"{indent}{line}\n" for line in body)


def _errors(result: LintResult) -> List[str]:
    return [d.message for d in result.errors]


def _warnings(result: LintResult) -> List[str]:
    return [d.message for d in result.warnings]


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_unresolved_next_is_the_only_error(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: agent\n"
            "    name: A\n"
            "    inputs:\n"
            '      agent_path: "x"\n'
            "      init_kwargs: {}\n"
            "      call_kwargs: {}\n"
            "    outputs: [o]\n"
            "    next: [b]\n"
        )
        result = lint_text(text)
        assert result.messages == ["Unresolved node reference: b"]
        diagnostic = result.diagnostics[0]
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.range == Range(9, 11, 12)
        assert diagnostic.context == "a"

    def test_ifelse_without_if_branch(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: ifelse\n"
            "    name: A\n"
            "    conditions:\n"
            '      - elif: "x"\n'
            "        then: [a]\n"
        )
        result = lint_text(text)
        assert result.messages == [
            'Node "a" of type "ifelse" is missing required field: conditions.if'
        ]

    def test_iterator_subgraph_nodes_are_defined(self):
        text = (
            "nodes:\n"
            "  loop:\n"
            "    type: iterator\n"
            "    name: Loop\n"
            "    inputs:\n"
            '      iterable: "{{x}}"\n'
            "      subgraph:\n"
            "        nodes:\n" + _agent("inner", indent="          ")
        )
        result = lint_text(text)
        assert result.diagnostics == []

    @pytest.mark.parametrize(
        "outputs, message",
        [
            ("[]", "Node \"agg\": 'outputs' field is empty"),
            ('[""]', "Node \"agg\": 'outputs' field contains empty items"),
            ("{}", "Node \"agg\": 'outputs' field is empty"),
            ("{a: ''}", "Node \"agg\": 'outputs' field contains empty items"),
            ("[a, '-']", "Node \"agg\": 'outputs' field contains empty items"),
            ("text", "Node \"agg\": 'outputs' must be an array or object"),
        ],
    )
    def test_outputs_shape(self, outputs, message):
        text = f"nodes:\n  agg:\n    type: aggregator\n    name: G\n    outputs: {outputs}\n"
        result = lint_text(text)
        assert result.messages == [message]
        assert result.diagnostics[0].severity == Severity.ERROR

    def test_mixed_indentation_warns_once(self):
        text = (
            "nodes:\n"
            " \ta:\n"
            "    type: aggregator\n"
            "    name: A\n"
            "    outputs: [o]\n"
        )
        result = lint_text(text)
        assert _errors(result) == []
        assert _warnings(result) == ["Mixed tab and space indentation"]
        assert result.warnings[0].range == Range(1, 0, 2)


# ---------------------------------------------------------------------------
# Document-level failures
# ---------------------------------------------------------------------------


class TestDocumentLevel:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "name: graph\n",
            "nodes:\n",
            "nodes: [a, b]\n",
            "nodes: just text\n",
            "- a\n- b\n",
        ],
    )
    def test_missing_or_invalid_nodes(self, text):
        result = lint_text(text)
        assert result.messages == ["Missing or invalid 'nodes' section"]
        assert result.has_errors

    def test_invalid_nodes_points_at_key(self):
        result = lint_text("name: g\nnodes: [a]\n")
        assert result.diagnostics[0].range.line == 1

    def test_syntax_error_is_single_error_at_start(self):
        result = lint_text("nodes:\n  a: [unclosed\n  b: {type: agent\n")
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].message.startswith("YAML Syntax Error:")
        assert result.diagnostics[0].range == Range(0, 0, 1)

    def test_each_call_returns_a_fresh_result(self):
        text = "nodes:\n  a: {type: aggregator, name: A, outputs: [o], next: b}\n"
        first = lint_text(text)
        second = lint_text(text)
        assert first is not second
        assert first.messages == second.messages


# ---------------------------------------------------------------------------
# Node contracts
# ---------------------------------------------------------------------------


class TestNodeContracts:
    def test_valid_agent_has_no_diagnostics(self):
        assert lint_text("nodes:\n" + _agent("writer")).diagnostics == []

    def test_missing_required_field(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: agent\n"
            "    name: A\n"
            "    inputs: {agent_path: x, init_kwargs: {}, call_kwargs: {}}\n"
        )
        assert _errors(lint_text(text)) == [
            'Node "a" of type "agent" is missing required field: outputs'
        ]

    def test_type_is_case_insensitive(self):
        text = "nodes:\n  a: {type: Aggregator, name: A}\n"
        assert _errors(lint_text(text)) == [
            'Node "a" of type "Aggregator" is missing required field: outputs'
        ]

    def test_unknown_type_is_a_warning(self):
        result = lint_text("nodes:\n  a: {type: mystery, name: M}\n")
        assert _errors(result) == []
        assert _warnings(result) == ['Node "a" has unknown type: mystery']

    def test_empty_type_skips_contract_but_warns_empty_value(self):
        result = lint_text('nodes:\n  a: {type: "", name: A}\n')
        assert _errors(result) == []
        assert _warnings(result) == ["Node \"a\": 'type' has empty value"]

    def test_agent_without_agent_path(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: agent\n"
            "    name: A\n"
            "    inputs: {init_kwargs: {k: 1}, call_kwargs: {}}\n"
            "    outputs: [o]\n"
        )
        assert _errors(lint_text(text)) == [
            'Node "a" of type "agent" is missing required field: inputs.agent_path'
        ]

    def test_agent_requires_init_kwargs(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: agent\n"
            "    name: A\n"
            "    inputs: {agent_path: pkg.Agent, call_kwargs: {}}\n"
            "    outputs: [o]\n"
        )
        assert _errors(lint_text(text)) == [
            'Node "a" of type "agent" is missing required field: inputs.init_kwargs'
        ]

    @pytest.mark.parametrize(
        "agent_path",
        [
            "genor_agents.custom_smart_judge_agents.identity_agent.IdentityAgent",
            "genor_agents.information_extraction.ocrs.pdf_ocr_agent.PDFOCRAgent",
        ],
    )
    def test_exempt_agents_need_no_init_kwargs(self, agent_path):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: agent\n"
            "    name: A\n"
            f"    inputs: {{agent_path: {agent_path}, call_kwargs: {{}}}}\n"
            "    outputs: [o]\n"
        )
        assert lint_text(text).diagnostics == []

    def test_call_args_satisfies_call_requirement(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: agent\n"
            "    name: A\n"
            "    inputs: {agent_path: x, init_kwargs: {k: 1}, call_args: [1]}\n"
            "    outputs: [o]\n"
        )
        assert lint_text(text).diagnostics == []

    def test_missing_call_fields_reports_call_kwargs(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: agent\n"
            "    name: A\n"
            "    inputs: {agent_path: x, init_kwargs: {k: 1}}\n"
            "    outputs: [o]\n"
        )
        assert _errors(lint_text(text)) == [
            'Node "a" of type "agent" is missing required field: inputs.call_kwargs'
        ]

    def test_iterator_without_iterable(self):
        text = (
            "nodes:\n"
            "  loop:\n"
            "    type: iterator\n"
            "    name: L\n"
            "    inputs:\n"
            "      subgraph:\n"
            "        nodes:\n" + _agent("inner", indent="          ")
        )
        assert _errors(lint_text(text)) == [
            'Node "loop" of type "iterator" is missing required field: inputs.iterable'
        ]

    def test_container_without_subgraph_nodes(self):
        text = (
            "nodes:\n"
            "  loop:\n"
            "    type: while\n"
            "    name: L\n"
            "    inputs:\n"
            "      subgraph: {}\n"
        )
        assert _errors(lint_text(text)) == [
            'Node "loop" of type "while" is missing required field: inputs.subgraph.nodes',
            'Node "loop" has invalid or missing subgraph.nodes structure',
        ]

    def test_ifelse_conditions_must_be_a_list(self):
        text = "nodes:\n  a: {type: ifelse, name: A, conditions: {if: x}}\n"
        assert _errors(lint_text(text)) == [
            'Node "a" of type "ifelse" has invalid conditions structure - should be an array'
        ]

    def test_ifelse_with_if_branch_is_valid(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: ifelse\n"
            "    name: A\n"
            "    conditions:\n"
            "      - if: \"{{ x }}\"\n"
            "        then: b\n"
            "      - else: true\n"
        )
        assert lint_text(text).diagnostics == []

    @pytest.mark.parametrize("condition", ["", " ''", " ~", " false"])
    def test_ifelse_with_empty_if_is_missing(self, condition):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: ifelse\n"
            "    name: A\n"
            "    conditions:\n"
            f"      - if:{condition}\n"
            "        then: [b]\n"
        )
        assert _errors(lint_text(text)) == [
            'Node "a" of type "ifelse" is missing required field: conditions.if'
        ]

    @pytest.mark.parametrize(
        "value",
        ["2024-02-30", "!!int abc", "!!bool maybe", "!include other.yml"],
    )
    def test_unconstructible_field_values_are_plain_text(self, value):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: aggregator\n"
            "    name: A\n"
            "    outputs: [o]\n"
            f"    note: {value}\n"
        )
        assert lint_text(text).diagnostics == []

    def test_non_mapping_node_is_invalid_structure(self):
        result = lint_text("nodes:\n  a: just a string\n")
        assert result.messages == ['Node "a" has invalid structure']


# ---------------------------------------------------------------------------
# next field
# ---------------------------------------------------------------------------


class TestNextField:
    @pytest.mark.parametrize(
        "next_value, message",
        [
            ("'-'", "Node \"a\": 'next' field is empty"),
            ("[]", "Node \"a\": 'next' field is empty"),
            ("[b, '']", "Node \"a\": 'next' field contains empty items"),
            ("{b: 1}", "Node \"a\": 'next' must be an array or string"),
        ],
    )
    def test_next_shape(self, next_value, message):
        text = (
            "nodes:\n"
            f"  a: {{type: aggregator, name: A, outputs: [o], next: {next_value}}}\n"
            "  b: {type: aggregator, name: B, outputs: [o]}\n"
        )
        assert _errors(lint_text(text)) == [message]

    def test_null_next_is_error_and_warning(self):
        text = "nodes:\n  a:\n    type: aggregator\n    name: A\n    outputs: [o]\n    next:\n"
        result = lint_text(text)
        assert _errors(result) == ["Node \"a\": 'next' field is empty"]
        assert _warnings(result) == ["Node \"a\": 'next' has empty value"]

    def test_string_next_resolves(self):
        text = (
            "nodes:\n"
            "  a: {type: aggregator, name: A, outputs: [o], next: b}\n"
            "  b: {type: aggregator, name: B, outputs: [o]}\n"
        )
        assert lint_text(text).diagnostics == []


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


class TestReferences:
    def test_each_occurrence_is_reported(self):
        text = (
            "nodes:\n"
            "  a:\n"
            "    type: aggregator\n"
            "    name: A\n"
            "    outputs: [o]\n"
            "    next: ghost\n"
            "  b:\n"
            "    type: aggregator\n"
            "    name: B\n"
            "    outputs: [o]\n"
            "    next: [ghost]\n"
        )
        result = lint_text(text)
        assert result.messages == [
            "Unresolved node reference: ghost",
            "Unresolved node reference: ghost",
        ]
        assert [d.context for d in result.diagnostics] == ["a", "b"]
        assert [d.line for d in result.diagnostics] == [5, 10]

    @pytest.mark.parametrize(
        "next_line, columns",
        [
            ("    next: e\n", [10]),
            ("    next: [e, e]\n", [11, 14]),
            ('    next: "e"\n', [11]),
            ("\t  next: e\n", [9]),
        ],
    )
    def test_reference_range_points_at_the_name(self, next_line, columns):
        text = "nodes:\n  a:\n    type: aggregator\n    name: A\n    outputs: [o]\n" + next_line
        result = lint_text(text)
        assert [d.range for d in result.errors] == [Range(5, c, c + 1) for c in columns]

    def test_suggestion_for_misspelled_reference(self):
        text = (
            "nodes:\n"
            "  fetch: {type: aggregator, name: F, outputs: [o], next: sumarize}\n"
            "  summarize: {type: aggregator, name: S, outputs: [o]}\n"
        )
        result = lint_text(text, file="graph.yml")
        diagnostic = result.diagnostics[0]
        assert diagnostic.suggestion == "summarize"
        assert diagnostic.render("graph.yml") == (
            "graph.yml:2: error: Unresolved node reference: sumarize (in fetch). "
            "Did you mean 'summarize'?"
        )

    def test_nested_reference_to_top_level_node_resolves(self):
        text = (
            "nodes:\n"
            "  loop:\n"
            "    type: iterator\n"
            "    name: L\n"
            "    inputs:\n"
            "      iterable: items\n"
            "      subgraph:\n"
            "        nodes:\n"
            + _agent("inner", extra="next: done\n", indent="          ")
            + "    next: [inner]\n"
            "  done: {type: aggregator, name: D, outputs: [o]}\n"
        )
        assert lint_text(text).diagnostics == []

    def test_unresolved_nested_reference_names_qualified_source(self):
        text = (
            "nodes:\n"
            "  loop:\n"
            "    type: while\n"
            "    name: L\n"
            "    inputs:\n"
            "      subgraph:\n"
            "        nodes:\n" + _agent("inner", extra="next: nowhere\n", indent="          ")
        )
        result = lint_text(text)
        assert result.messages == ["Unresolved node reference: nowhere"]
        assert result.diagnostics[0].context == "loop.inner"

    def test_subgraph_under_other_types_is_still_walked(self):
        text = (
            "nodes:\n"
            "  group:\n"
            "    type: aggregator\n"
            "    name: G\n"
            "    outputs: [o]\n"
            "    inputs:\n"
            "      subgraph:\n"
            "        nodes:\n"
            "          inner: {type: aggregator, name: I, outputs: []}\n"
        )
        result = lint_text(text)
        assert result.messages == ["Node \"inner\": 'outputs' field is empty"]
        assert result.diagnostics[0].context == "group.inner"


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------


class TestGraphWalker:
    def _walk(self, text: str):
        root = parse_document(text)
        return GraphWalker(text.split("\n")).walk(root.get("nodes"))

    def test_qualified_names_for_nested_nodes(self):
        text = (
            "nodes:\n"
            "  outer:\n"
            "    type: iterator\n"
            "    name: O\n"
            "    inputs:\n"
            "      iterable: xs\n"
            "      subgraph:\n"
            "        nodes:\n"
            "          step: {type: aggregator, name: S, outputs: [o]}\n"
        )
        state = self._walk(text)
        assert [d.qualified_name for d in state.defined] == ["outer", "outer.step"]
        assert state.defined_names == {"outer", "step"}

    def test_definition_range_covers_key(self):
        state = self._walk("nodes:\n  writer: {type: aggregator, name: W, outputs: [o]}\n")
        assert state.defined[0].range == Range(1, 2, 8)

    def test_duplicate_keys_in_one_mapping(self):
        text = (
            "nodes:\n"
            "  a: {type: aggregator, name: A, outputs: [o]}\n"
            "  a: {type: aggregator, name: A2, outputs: [o]}\n"
        )
        state = self._walk(text)
        assert [d.message for d in state.diagnostics] == ["Duplicate node name: a"]
        assert state.diagnostics[0].line == 2

    def test_same_key_in_different_subgraphs_is_not_duplicate(self):
        text = (
            "nodes:\n"
            "  step: {type: aggregator, name: S, outputs: [o]}\n"
            "  loop:\n"
            "    type: while\n"
            "    name: L\n"
            "    inputs:\n"
            "      subgraph:\n"
            "        nodes:\n"
            "          step: {type: aggregator, name: S, outputs: [o]}\n"
        )
        state = self._walk(text)
        assert state.diagnostics == []
        assert [d.qualified_name for d in state.defined] == ["step", "loop", "loop.step"]

    def test_references_keep_source_and_position(self):
        text = "nodes:\n  a:\n    next:\n      - b\n      - c\n"
        state = self._walk(text)
        assert [(r.name, r.source, r.range.line) for r in state.references] == [
            ("b", "a", 3),
            ("c", "a", 4),
        ]
        assert state.references[0].range.start_char == 8

    def test_placeholder_references_are_not_collected(self):
        state = self._walk("nodes:\n  a:\n    next: [b, '-', '']\n")
        assert [r.name for r in state.references] == ["b"]


# ---------------------------------------------------------------------------
# Results, suggestions and files
# ---------------------------------------------------------------------------


def test_lint_result_partitions():
    result = LintResult(file="g.yml")
    result.add_error("broken", Range.at(3, 2, 4), context="a")
    result.add_warning("odd")
    assert result.has_errors and result.has_warnings
    assert [d.message for d in result.errors] == ["broken"]
    assert [d.message for d in result.warnings] == ["odd"]
    assert str(result.errors[0]) == "4: error: broken (in a)"


def test_diagnostic_defaults_to_document_start():
    diagnostic = Diagnostic("x", Severity.WARNING)
    assert diagnostic.range == Range(0, 0, 1)
    assert diagnostic.line == 0


@pytest.mark.parametrize(
    "ref, candidates, expected",
    [
        ("sumarize", ["fetch", "summarize"], "summarize"),
        ("fetch", ["fetch"], "fetch"),
        ("zzz", ["fetch", "summarize"], None),
        ("", ["fetch"], None),
    ],
)
def test_suggest(ref, candidates, expected):
    assert suggest(ref, candidates) == expected


def test_close_matches_deduplicates():
    assert sorted(close_matches("node", ["node1", "node1", "node2"])) == ["node1", "node2"]


def test_lint_file_reads_and_tags_path(tmp_path):
    path = tmp_path / "graph.yml"
    path.write_text("nodes:\n  a: {type: aggregator, name: A, outputs: [o], next: b}\n")
    result = lint_file(str(path))
    assert result.file == str(path)
    assert result.messages == ["Unresolved node reference: b"]


def test_lint_file_unreadable(tmp_path):
    result = lint_file(str(tmp_path / "missing.yml"))
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].message.startswith("Cannot read file:")
