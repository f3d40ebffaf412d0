# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Enumerate the YAML files of a workspace directory."""

import os
from pathlib import Path
from typing import Iterable, List, Optional

YAML_SUFFIXES = (".yml", ".yaml")
DEFAULT_EXCLUDE_DIRS = ("node_modules",)
DEFAULT_SKIP_NAME_FRAGMENT = "combined_graph"


def is_yaml_file(path: str) -> bool:
    return path.lower().endswith(YAML_SUFFIXES)


def find_yaml_files(
    root: str,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    skip_name_fragment: Optional[str] = DEFAULT_SKIP_NAME_FRAGMENT,
) -> List[str]:
    """Return every ``*.yml``/``*.yaml`` file under *root*, sorted.

    Files inside an excluded directory (at any depth) are skipped, and so are
    files whose lower-cased name contains *skip_name_fragment*. A missing
    root yields an empty list.
    """
    results: List[str] = []
    root_path = Path(root)
    if not root_path.is_dir():
        return results

    excluded = set(exclude_dirs)
    fragment = skip_name_fragment.lower() if skip_name_fragment else None

    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for fname in sorted(filenames):
            if not is_yaml_file(fname):
                continue
            if fragment and fragment in fname.lower():
                continue
            results.append(os.path.join(dirpath, fname))
    return sorted(results)


def expand_paths(
    paths: Iterable[str],
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    skip_name_fragment: Optional[str] = DEFAULT_SKIP_NAME_FRAGMENT,
) -> List[str]:
    """Expand directories in *paths* to the YAML files they contain.

    Plain file arguments are kept as given, even when they would be skipped
    by the directory rules.
    """
    files: List[str] = []
    for path in paths:
        if os.path.isdir(path):
            files.extend(find_yaml_files(path, exclude_dirs, skip_name_fragment))
        else:
            files.append(path)
    return files
