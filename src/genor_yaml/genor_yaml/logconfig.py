# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Logging setup shared by the linter, formatter and workspace search.

Records carry a ``document`` attribute naming the file being processed,
taken from a context variable set with :class:`DocumentContext`.
"""

import logging
from contextvars import ContextVar, Token
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "[%(document)s] %(message)s"

document_var: ContextVar[str] = ContextVar("document", default="")

PACKAGE_LOGGER = "genor_yaml"


class DocumentContext:
    """Sets the current document for log records emitted inside the block."""

    def __init__(self, document: str):
        self.document = document
        self._token: Optional[Token] = None

    def __enter__(self) -> "DocumentContext":
        self._token = document_var.set(self.document)
        return self

    def __exit__(self, *exc_info):
        if self._token is not None:
            document_var.reset(self._token)
            self._token = None

    @staticmethod
    def current() -> str:
        return document_var.get()


class DocumentContextFilter(logging.Filter):
    """Injects the current document path into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.document = document_var.get() or "-"
        return True


def configure_logging(level: Union[str, int] = "WARNING") -> logging.Logger:
    """Attach a rich handler to the package logger. Safe to call repeatedly."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_genor_yaml", False):
            logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(DocumentContextFilter())
    handler._genor_yaml = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger
