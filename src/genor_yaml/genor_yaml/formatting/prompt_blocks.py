# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Keep ``prompt: >`` blocks away from the serializer.

:func:`extract` swaps each block for a one-line placeholder
``<indent>prompt: "@@PROMPT_BLOCK_<n>@@"`` and :func:`restore` puts the
original lines back once the document has been re-serialized.
"""

import re
from dataclasses import dataclass, field
from typing import List

_LINE_BREAK_RE = re.compile(r"\r?\n")
_HEADER_RE = re.compile(r"^([ \t]*)prompt:[ \t]*>[ \t]*$")
_PLACEHOLDER_RE = re.compile(
    r"""^(?P<indent>[ \t]*)prompt:[ \t]*(?P<q>["'])@@PROMPT_BLOCK_(?P<index>\d+)@@(?P=q)[ \t]*$""",
    re.MULTILINE,
)


class PromptBlockError(ValueError):
    """Raised when placeholders and stored blocks do not line up."""


@dataclass
class ExtractedText:
    text: str
    blocks: List[str] = field(default_factory=list)


def placeholder(indent: str, index: int) -> str:
    return f'{indent}prompt: "@@PROMPT_BLOCK_{index}@@"'


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def extract(text: str) -> ExtractedText:
    """Replace every prompt block in *text* with a numbered placeholder line.

    A block starts at a ``prompt: >`` header and takes every following line
    that is blank or indented deeper than the header. Blank lines at the end
    of a block are left in the surrounding text.
    """
    lines = _LINE_BREAK_RE.split(text)
    blocks: List[str] = []
    out: List[str] = []

    i = 0
    while i < len(lines):
        match = _HEADER_RE.match(lines[i])
        if not match:
            out.append(lines[i])
            i += 1
            continue

        indent = match.group(1)
        block = [lines[i]]
        i += 1
        while i < len(lines):
            line = lines[i]
            if line.strip() == "" or _indent_width(line) > len(indent):
                block.append(line)
                i += 1
            else:
                break

        trailing: List[str] = []
        while len(block) > 1 and block[-1].strip() == "":
            trailing.insert(0, block.pop())

        out.append(placeholder(indent, len(blocks)))
        blocks.append("\n".join(block))
        out.extend(trailing)

    return ExtractedText("\n".join(out), blocks)


def _reindent(block: str, indent: str) -> str:
    lines = block.split("\n")
    delta = len(indent) - _indent_width(lines[0])
    if delta == 0:
        return block

    shifted = []
    for line in lines:
        if line.strip() == "":
            shifted.append(line)
        elif delta > 0:
            shifted.append(" " * delta + line)
        else:
            shifted.append(line[-delta:])
    return "\n".join(shifted)


def restore(text: str, blocks: List[str]) -> str:
    """Substitute every placeholder line in *text* with its original block.

    The block comes back verbatim when the serializer kept the placeholder at
    the header's indentation. Otherwise the whole block is shifted by the
    difference so it still nests under its parent mapping; the relative
    indentation of its lines is unchanged.
    """
    if not blocks:
        return text

    used: List[int] = []

    def _substitute(match: "re.Match[str]") -> str:
        index = int(match.group("index"))
        if index >= len(blocks):
            raise PromptBlockError(f"No stored prompt block for placeholder {index}")
        used.append(index)
        return _reindent(blocks[index], match.group("indent"))

    restored = _PLACEHOLDER_RE.sub(_substitute, text)

    if sorted(used) != list(range(len(blocks))):
        raise PromptBlockError(
            f"Expected each of {len(blocks)} prompt block(s) exactly once, "
            f"found placeholders {sorted(used)}"
        )
    return restored
