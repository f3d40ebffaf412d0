# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from .search import (
    CancellationToken,
    Location,
    find_definition,
    find_definitions,
    find_definitions_in_text,
    find_references,
    find_references_in_text,
)
from .workspace import expand_paths, find_yaml_files, is_yaml_file

__all__ = [
    "CancellationToken",
    "Location",
    "expand_paths",
    "find_definition",
    "find_definitions",
    "find_definitions_in_text",
    "find_references",
    "find_references_in_text",
    "find_yaml_files",
    "is_yaml_file",
]
