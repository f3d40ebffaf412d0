# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Per-type field contracts for graph nodes."""

from typing import Dict, FrozenSet, List, Optional

AGENT = "agent"
IFELSE = "ifelse"
AGGREGATOR = "aggregator"
ITERATOR = "iterator"
WHILE = "while"

REQUIRED_FIELDS: Dict[str, List[str]] = {
    AGENT: ["type", "name", "inputs", "outputs"],
    IFELSE: ["type", "name", "conditions"],
    AGGREGATOR: ["type", "name", "outputs"],
    ITERATOR: ["type", "name", "inputs"],
    WHILE: ["type", "name", "inputs"],
}

# Node types that own a nested ``inputs.subgraph.nodes`` mapping.
CONTAINER_TYPES: FrozenSet[str] = frozenset({ITERATOR, WHILE})

# Agents that take no initialization parameters.
AGENTS_WITHOUT_INIT_KWARGS: FrozenSet[str] = frozenset(
    {
        "genor_agents.custom_smart_judge_agents.identity_agent.IdentityAgent",
        "genor_agents.information_extraction.ocrs.pdf_ocr_agent.PDFOCRAgent",
    }
)

# call_kwargs and call_args are interchangeable; the first name is reported.
CALL_FIELDS = ("call_kwargs", "call_args")


def normalize_type(node_type: str) -> str:
    return node_type.strip().lower()


def required_fields(node_type: str) -> Optional[List[str]]:
    """Return the required fields for *node_type*, or None if the type is unknown."""
    return REQUIRED_FIELDS.get(normalize_type(node_type))


def is_container(node_type: str) -> bool:
    return normalize_type(node_type) in CONTAINER_TYPES


def requires_init_kwargs(agent_path: str) -> bool:
    return agent_path.strip() not in AGENTS_WITHOUT_INIT_KWARGS
