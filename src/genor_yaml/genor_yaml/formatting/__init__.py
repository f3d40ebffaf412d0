# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from .formatter import DEFAULT_INDENT, UNLIMITED_WIDTH, FormatError, format_file, format_text
from .prompt_blocks import ExtractedText, PromptBlockError, extract, restore

__all__ = [
    "DEFAULT_INDENT",
    "UNLIMITED_WIDTH",
    "ExtractedText",
    "FormatError",
    "PromptBlockError",
    "extract",
    "format_file",
    "format_text",
    "restore",
]
