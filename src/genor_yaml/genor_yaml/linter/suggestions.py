# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Edit-distance suggestions for misspelled node references."""

import difflib
from typing import Iterable, List, Optional


def suggest(ref: str, candidates: Iterable[str], cutoff: float = 0.6) -> Optional[str]:
    """Return the closest candidate to *ref*, or None if nothing is close enough."""
    matches = close_matches(ref, candidates, n=1, cutoff=cutoff)
    return matches[0] if matches else None


def close_matches(
    ref: str, candidates: Iterable[str], n: int = 3, cutoff: float = 0.6
) -> List[str]:
    if not ref:
        return []
    return difflib.get_close_matches(ref, list(dict.fromkeys(candidates)), n=n, cutoff=cutoff)
