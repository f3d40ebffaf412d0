# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Diagnostic types produced by the graph linter."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Range:
    """A single-line span in the source, 0-based like editor positions."""

    line: int = 0
    start_char: int = 0
    end_char: int = 1

    @classmethod
    def at(cls, line: int, character: int = 0, length: int = 1) -> "Range":
        return cls(line, character, character + max(length, 1))


DOCUMENT_START = Range(0, 0, 1)


@dataclass
class Diagnostic:
    """A problem found in a graph document."""

    message: str
    severity: Severity
    range: Range = DOCUMENT_START
    context: Optional[str] = None  # node name, qualified when nested
    suggestion: Optional[str] = None

    @property
    def line(self) -> int:
        return self.range.line

    def render(self, file: Optional[str] = None) -> str:
        loc = f"{file}:{self.range.line + 1}" if file else f"{self.range.line + 1}"
        msg = f"{loc}: {self.severity.value}: {self.message}"
        if self.context:
            msg += f" (in {self.context})"
        if self.suggestion:
            msg += f". Did you mean '{self.suggestion}'?"
        return msg

    def __str__(self) -> str:
        return self.render()


@dataclass
class LintResult:
    """Diagnostics for one document. A new result replaces the previous one."""

    file: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def has_warnings(self) -> bool:
        return any(d.severity == Severity.WARNING for d in self.diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    @property
    def messages(self) -> List[str]:
        return [d.message for d in self.diagnostics]

    def add_error(
        self,
        message: str,
        range: Range = DOCUMENT_START,
        context: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        self.diagnostics.append(
            Diagnostic(
                message=message,
                severity=Severity.ERROR,
                range=range,
                context=context,
                suggestion=suggestion,
            )
        )

    def add_warning(
        self,
        message: str,
        range: Range = DOCUMENT_START,
        context: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        self.diagnostics.append(
            Diagnostic(
                message=message,
                severity=Severity.WARNING,
                range=range,
                context=context,
                suggestion=suggestion,
            )
        )

    def extend(self, diagnostics: List[Diagnostic]):
        self.diagnostics.extend(diagnostics)
