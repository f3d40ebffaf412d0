# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Lint, format and navigate YAML workflow graph documents."""

__version__ = "0.2.0"
