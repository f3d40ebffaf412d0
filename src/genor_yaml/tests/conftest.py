# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import logging
from pathlib import Path

import pytest

from genor_yaml.logconfig import PACKAGE_LOGGER


@pytest.fixture(autouse=True)
def reset_package_state():
    """Undo logger changes made by the CLI between tests."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_genor_yaml", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A small workspace with two graph files and a few files that must be skipped."""
    (tmp_path / "main.yml").write_text(
        "nodes:\n"
        "  fetch:\n"
        "    type: agent\n"
        "    next: [summarize]\n"
        "  summarize:\n"
        "    type: agent\n"
        '    prompt: "{{ fetch.outputs }}"\n'
    )
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "other.yaml").write_text(
        "nodes:\n"
        "  report:\n"
        "    next:\n"
        "      - summarize\n"
    )
    (tmp_path / "node_modules" / "pkg").mkdir(parents=True)
    (tmp_path / "node_modules" / "pkg" / "vendored.yml").write_text("summarize:\n")
    (tmp_path / "Combined_Graph_all.yaml").write_text("summarize:\n")
    (tmp_path / "notes.txt").write_text("summarize:\n")
    return tmp_path
