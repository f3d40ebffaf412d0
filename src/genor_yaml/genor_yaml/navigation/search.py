# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Find node definitions and references by name.

Matching is line based: a line matches when one of the patterns for the word
matches, and the reported column is the first occurrence of the word on that
line. Locations use 0-based lines and columns.
"""

import logging
import os
import re
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Pattern

from ..logconfig import DocumentContext
from .workspace import DEFAULT_EXCLUDE_DIRS, DEFAULT_SKIP_NAME_FRAGMENT, find_yaml_files

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class Location:
    path: str
    line: int
    character: int

    def render(self) -> str:
        return f"{self.path}:{self.line + 1}:{self.character + 1}"

    def __str__(self) -> str:
        return self.render()


class CancellationToken:
    """Cooperative cancellation flag shared between a search and its caller."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def definition_patterns(word: str) -> List[Pattern[str]]:
    escaped = re.escape(word)
    return [re.compile(rf"^\s*{escaped}:\s*")]


def reference_patterns(word: str) -> List[Pattern[str]]:
    escaped = re.escape(word)
    return [
        re.compile(rf"^\s*-\s*{escaped}\s*$"),
        re.compile(rf"^\s*{escaped}:\s*"),
        re.compile(rf"{{{{\s*{escaped}\.outputs"),
    ]


def _scan(text: str, word: str, patterns: Iterable[Pattern[str]], path: str) -> List[Location]:
    patterns = list(patterns)
    locations = []
    for lineno, line in enumerate(text.splitlines()):
        if any(p.search(line) for p in patterns):
            locations.append(Location(path, lineno, max(line.find(word), 0)))
    return locations


def find_definitions_in_text(text: str, word: str, path: str = "") -> List[Location]:
    if not word:
        return []
    return _scan(text, word, definition_patterns(word), path)


def find_references_in_text(text: str, word: str, path: str = "") -> List[Location]:
    if not word:
        return []
    return _scan(text, word, reference_patterns(word), path)


def _read(path: str) -> Optional[str]:
    with DocumentContext(path):
        try:
            with open(path, encoding="utf-8") as fh:
                return fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Skipping unreadable file: %s", exc)
            return None


def _search_files(
    files: List[str],
    scan: Callable[[str, str], List[Location]],
    cancel: Optional[CancellationToken],
    progress: Optional[ProgressCallback],
) -> List[Location]:
    results: List[Location] = []
    total = len(files)
    for processed, path in enumerate(files, start=1):
        if cancel is not None and cancel.is_cancelled:
            LOGGER.info("Search cancelled after %d of %d file(s)", processed - 1, total)
            break
        text = _read(path)
        if text is not None:
            results.extend(scan(text, path))
        if progress is not None:
            progress(processed, total)
    return results


def find_definitions(
    word: str,
    root: str,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    skip_name_fragment: Optional[str] = DEFAULT_SKIP_NAME_FRAGMENT,
    cancel: Optional[CancellationToken] = None,
    progress: Optional[ProgressCallback] = None,
    skip_path: Optional[str] = None,
) -> List[Location]:
    """Return every definition of *word* in the YAML files under *root*."""
    if not word:
        return []
    skipped = os.path.abspath(skip_path) if skip_path else None
    files = [
        f
        for f in find_yaml_files(root, exclude_dirs, skip_name_fragment)
        if os.path.abspath(f) != skipped
    ]
    return _search_files(
        files,
        lambda t, p: find_definitions_in_text(t, word, p),
        cancel,
        progress,
    )


def find_definition(
    path: str,
    word: str,
    root: Optional[str] = None,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    skip_name_fragment: Optional[str] = DEFAULT_SKIP_NAME_FRAGMENT,
    cancel: Optional[CancellationToken] = None,
    progress: Optional[ProgressCallback] = None,
) -> List[Location]:
    """Locate the definition of *word*.

    The document at *path* is searched first and its first match wins. If it
    has none, every other YAML file under *root* is searched and all matches
    are returned.
    """
    if not word:
        return []

    text = _read(path)
    if text is not None:
        local = find_definitions_in_text(text, word, path)
        if local:
            return local[:1]

    if root is None:
        return []
    return find_definitions(
        word, root, exclude_dirs, skip_name_fragment, cancel, progress, skip_path=path
    )


def find_references(
    word: str,
    root: str,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    skip_name_fragment: Optional[str] = DEFAULT_SKIP_NAME_FRAGMENT,
    cancel: Optional[CancellationToken] = None,
    progress: Optional[ProgressCallback] = None,
) -> List[Location]:
    """Return every line under *root* that defines or refers to *word*.

    *cancel* is checked before each file; results gathered so far are
    returned when it fires. *progress* receives ``(processed, total)`` after
    each file.
    """
    if not word:
        return []
    files = find_yaml_files(root, exclude_dirs, skip_name_fragment)
    LOGGER.debug("Searching %d file(s) for references to %r", len(files), word)
    return _search_files(
        files,
        lambda t, p: find_references_in_text(t, word, p),
        cancel,
        progress,
    )
