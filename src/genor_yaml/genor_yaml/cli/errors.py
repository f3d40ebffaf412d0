# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Error panels that name the likely cause of a failure and how to fix it."""

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Union

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

console = Console(stderr=True)

MAX_DETAIL_LINES = 10


@dataclass(frozen=True)
class Hint:
    pattern: Pattern[str]
    cause: str
    fix: str


def _hint(pattern: str, cause: str, fix: str) -> Hint:
    return Hint(re.compile(pattern, re.IGNORECASE), cause, fix)


HINTS = (
    _hint(
        r"invalid yaml|yaml syntax error|while (parsing|scanning|composing)|mapping values are not allowed",
        "The document is not valid YAML",
        "Run `genor-yaml lint <file>` to see where parsing fails",
    ),
    _hint(
        r"prompt block|placeholder",
        "A protected prompt block could not be restored",
        "Check that every `prompt: >` header is followed by indented lines",
    ),
    _hint(
        r"no such file|not found|does not exist",
        "File or directory not found",
        "Check the path and try again",
    ),
    _hint(
        r"permission denied|read-only file system",
        "Permission denied",
        "Check the file permissions",
    ),
    _hint(
        r"codec can't decode|invalid start byte",
        "File is not UTF-8 text",
        "Re-save the file with UTF-8 encoding",
    ),
    _hint(
        r"validation error for toolkitconfig",
        "Invalid setting",
        "Fix the option or the GENOR_YAML_* variable named below",
    ),
)


def find_hint(detail: str) -> Optional[Hint]:
    """Return the first hint whose pattern occurs in *detail*."""
    return next((hint for hint in HINTS if hint.pattern.search(detail)), None)


def show_error(title: str, detail: Union[BaseException, str] = ""):
    """Print one red panel: the title, the recognised cause, then the detail tail."""
    detail = str(detail).strip()
    body = [Text(f"✗ {title}", style="bold red")]

    hint = find_hint(detail)
    if hint is not None:
        body.append(Text(f"\n{hint.cause}", style="red"))
        body.append(Text.assemble(("→ Fix: ", "bold yellow"), (hint.fix, "yellow")))

    tail = detail.splitlines()[-MAX_DETAIL_LINES:]
    if tail:
        body.append(Text(""))
        body.extend(Text.assemble(("│ ", "dim"), line) for line in tail)

    console.print(Panel(Group(*body), border_style="red", expand=False))


def show_success(message: str):
    console.print(Text.assemble(("✓ ", "bold green"), (message, "green")))
