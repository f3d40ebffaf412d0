# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Toolkit configuration.

All values have defaults and can be overridden via environment variables
using the ``GENOR_YAML_`` prefix:

  GENOR_YAML_INDENTATION         Spaces per nesting level when formatting
                                  (default: 2, range 2-9)
  GENOR_YAML_WRAP_LINES          Preferred line width when formatting,
                                  -1 for no wrapping (default: -1)
  GENOR_YAML_LOG_LEVEL           Log level (default: WARNING)
  GENOR_YAML_EXCLUDE_DIRS        Comma-separated directory names skipped by
                                  workspace search (default: node_modules)
  GENOR_YAML_SKIP_NAME_FRAGMENT  Files whose lower-cased name contains this
                                  are skipped by workspace search
                                  (default: combined_graph)

Command-line flags take precedence over these values.
"""

from __future__ import annotations

from typing import Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"})
# PyYAML's emitter ignores indents outside this range.
MIN_INDENTATION = 2
MAX_INDENTATION = 9
MIN_WRAP_WIDTH = 20


class ToolkitConfig(BaseSettings):
    """Toolkit configuration.

    Instantiate with ``ToolkitConfig()`` to read defaults and any
    ``GENOR_YAML_*`` environment variable overrides.
    """

    model_config = SettingsConfigDict(env_prefix="GENOR_YAML_")

    # ── Formatting ─────────────────────────────────────────────────────────
    indentation: int = 2
    wrap_lines: int = -1

    # ── Workspace search ───────────────────────────────────────────────────
    exclude_dirs: str = "node_modules"
    skip_name_fragment: str = "combined_graph"

    # ── Logging ────────────────────────────────────────────────────────────
    log_level: str = "WARNING"

    # ── Validators ─────────────────────────────────────────────────────────

    @field_validator("indentation")
    @classmethod
    def _valid_indentation(cls, v: int) -> int:
        if not (MIN_INDENTATION <= v <= MAX_INDENTATION):
            raise ValueError(
                f"indentation={v} is outside the supported range "
                f"({MIN_INDENTATION}-{MAX_INDENTATION})"
            )
        return v

    @field_validator("wrap_lines")
    @classmethod
    def _valid_wrap_lines(cls, v: int) -> int:
        if v != -1 and v < MIN_WRAP_WIDTH:
            raise ValueError(f"wrap_lines={v} must be -1 (unlimited) or >= {MIN_WRAP_WIDTH}")
        return v

    @field_validator("exclude_dirs", "skip_name_fragment")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        if v.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level={v!r} is not a valid log level. "
                f"Valid values: {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )
        return v.upper()

    @property
    def excluded_dirs(self) -> Tuple[str, ...]:
        return tuple(d.strip() for d in self.exclude_dirs.split(",") if d.strip())


def load_and_validate_config() -> ToolkitConfig:
    """Read and validate the settings from the environment.

    Raises ``pydantic.ValidationError`` if any value is invalid. Called once
    at CLI startup so bad settings surface before any file is touched.
    """
    return ToolkitConfig()
