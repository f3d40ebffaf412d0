# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Report references to nodes that are never defined."""

from typing import Iterable, List

from .diagnostics import Diagnostic, Severity
from .suggestions import suggest
from .walker import DefinedNode, NodeReference


def resolve_references(
    references: Iterable[NodeReference], defined: Iterable[DefinedNode]
) -> List[Diagnostic]:
    """Return one error per reference whose name matches no defined node key.

    Matching is exact against unqualified keys from every depth, so a
    reference inside a subgraph may target a top-level node and vice versa.
    Repeated references to the same missing name are each reported.
    """
    candidates = [d.name for d in defined]
    known = set(candidates)

    diagnostics: List[Diagnostic] = []
    for ref in references:
        if ref.name in known:
            continue
        diagnostics.append(
            Diagnostic(
                message=f"Unresolved node reference: {ref.name}",
                severity=Severity.ERROR,
                range=ref.range,
                context=ref.source,
                suggestion=suggest(ref.name, candidates),
            )
        )
    return diagnostics
