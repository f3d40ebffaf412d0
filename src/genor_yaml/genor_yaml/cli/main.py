# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Command-line entry point: ``genor-yaml lint|format|definition|references``."""

import argparse
import os
import signal
import sys
import threading
from contextlib import contextmanager
from typing import List, Optional, Tuple

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..formatting import FormatError, PromptBlockError, format_file
from ..linter import LintResult, Severity, lint_file
from ..logconfig import configure_logging
from ..navigation import (
    CancellationToken,
    Location,
    expand_paths,
    find_definition,
    find_definitions,
    find_references,
)
from .config import ToolkitConfig, load_and_validate_config
from .errors import show_error, show_success
from .progress import SearchProgress

console = Console()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        description="Lint, format and navigate YAML workflow graph documents",
        prog="genor-yaml",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: GENOR_YAML_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(
        dest="action",
        help="Action to perform",
        required=True,
    )

    # lint subcommand
    lint_parser = subparsers.add_parser(
        "lint",
        help="Check graph documents for structural errors",
        description=(
            "Check workflow graph documents for missing fields, malformed values, "
            "unresolved node references and indentation problems."
        ),
    )
    lint_parser.add_argument(
        "paths",
        nargs="+",
        help="Files or directories to lint; directories are searched for YAML files",
    )
    lint_parser.add_argument(
        "--format",
        choices=["text", "table"],
        default="text",
        help="Output format (default: text)",
    )
    lint_parser.add_argument(
        "--warnings-as-errors",
        "-W",
        action="store_true",
        help="Treat warnings as errors (affects exit code)",
    )
    lint_parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only output errors and summary",
    )

    # format subcommand
    format_parser = subparsers.add_parser(
        "format",
        help="Re-serialize documents, keeping prompt blocks verbatim",
    )
    format_parser.add_argument("paths", nargs="+", help="Files or directories to format")
    format_parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Spaces per nesting level (default: GENOR_YAML_INDENTATION or 2)",
    )
    format_parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Preferred line width, -1 for none (default: GENOR_YAML_WRAP_LINES or -1)",
    )
    format_parser.add_argument(
        "--check",
        action="store_true",
        help="Don't write files; exit 1 if any file would change",
    )

    # definition subcommand
    definition_parser = subparsers.add_parser(
        "definition",
        help="Locate where a node is defined",
    )
    definition_parser.add_argument("word", help="Node name")
    definition_parser.add_argument(
        "--file",
        default=None,
        help="Document to search first; other workspace files are searched if it has no match",
    )
    definition_parser.add_argument(
        "--root",
        default=".",
        help="Workspace root (default: current directory)",
    )

    # references subcommand
    references_parser = subparsers.add_parser(
        "references",
        help="List every place a node is defined or referenced",
    )
    references_parser.add_argument("word", help="Node name")
    references_parser.add_argument(
        "--root",
        default=".",
        help="Workspace root (default: current directory)",
    )

    return parser


def print_result_text(result: LintResult, quiet: bool = False):
    """Print lint diagnostics one per line."""
    for diagnostic in result.diagnostics:
        if quiet and diagnostic.severity == Severity.WARNING:
            continue
        style = "red" if diagnostic.severity == Severity.ERROR else "yellow"
        console.print(
            diagnostic.render(result.file),
            style=style,
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


def print_results_table(results: List[LintResult], quiet: bool = False):
    """Print lint diagnostics of several files in one table."""
    if not any(r.diagnostics for r in results):
        return

    table = Table(title="Lint Results")
    table.add_column("File", style="cyan")
    table.add_column("Line", style="magenta")
    table.add_column("Severity", style="bold")
    table.add_column("Message")
    table.add_column("Suggestion", style="green")

    for result in results:
        for diagnostic in result.diagnostics:
            if quiet and diagnostic.severity == Severity.WARNING:
                continue
            severity_style = "red" if diagnostic.severity == Severity.ERROR else "yellow"
            message = diagnostic.message
            if diagnostic.context:
                message += f" (in {diagnostic.context})"
            table.add_row(
                escape(result.file or "-"),
                str(diagnostic.line + 1),
                f"[{severity_style}]{diagnostic.severity.value}[/{severity_style}]",
                escape(message),
                escape(diagnostic.suggestion or "-"),
            )

    console.print(table)


def print_locations(word: str, locations: List[Location], kind: str) -> int:
    if not locations:
        console.print(f"[yellow]No {kind} found for '{word}'[/yellow]")
        return 1
    for location in locations:
        console.print(location.render(), markup=False, highlight=False, soft_wrap=True)
    return 0


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def cmd_lint(args: argparse.Namespace, config: ToolkitConfig) -> int:
    """Execute the lint command."""
    files = expand_paths(args.paths, config.excluded_dirs, config.skip_name_fragment)
    if not files:
        console.print("[yellow]No YAML files found.[/yellow]")
        return 0

    results = [lint_file(path, tab_size=config.indentation) for path in files]

    if args.format == "table":
        print_results_table(results, args.quiet)
    else:
        for result in results:
            print_result_text(result, args.quiet)

    error_count = sum(len(r.errors) for r in results)
    warning_count = sum(len(r.warnings) for r in results)

    if error_count == 0 and warning_count == 0:
        if not args.quiet:
            show_success(f"{_plural(len(files), 'file')} checked, no problems found.")
        return 0

    summary_parts = []
    if error_count > 0:
        summary_parts.append(f"[red]{_plural(error_count, 'error')}[/red]")
    if warning_count > 0:
        summary_parts.append(f"[yellow]{_plural(warning_count, 'warning')}[/yellow]")
    console.print(f"\nLint complete: {', '.join(summary_parts)}")

    if error_count > 0:
        return 1
    if args.warnings_as_errors and warning_count > 0:
        return 1
    return 0


def cmd_format(args: argparse.Namespace, config: ToolkitConfig) -> int:
    """Execute the format command."""
    indent = args.indent if args.indent is not None else config.indentation
    width = args.width if args.width is not None else config.wrap_lines
    try:
        ToolkitConfig(indentation=indent, wrap_lines=width)
    except ValidationError as exc:
        show_error("Invalid formatting options", str(exc))
        return 2

    files = expand_paths(args.paths, config.excluded_dirs, config.skip_name_fragment)
    changed: List[str] = []
    failed = 0
    for path in files:
        try:
            if format_file(path, indent=indent, width=width, check=args.check):
                changed.append(path)
        except (FormatError, PromptBlockError, OSError, UnicodeDecodeError) as exc:
            show_error(f"Cannot format {path}", str(exc))
            failed += 1

    if args.check:
        for path in changed:
            console.print(f"would reformat {path}", markup=False, highlight=False, soft_wrap=True)
    elif changed:
        show_success(f"Reformatted {_plural(len(changed), 'file')}.")

    if failed:
        return 1
    if args.check and changed:
        return 1
    return 0


@contextmanager
def _cancel_on_interrupt(cancel: CancellationToken):
    """Turn Ctrl-C into a cancellation request while a search runs."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, lambda signum, frame: cancel.cancel())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _run_search(title: str, search) -> Tuple[List[Location], bool]:
    """Run *search* with a progress display.

    Returns the locations found and whether the search was interrupted, in
    which case the locations cover only the files scanned before Ctrl-C.
    """
    cancel = CancellationToken()
    with SearchProgress(title, enabled=console.is_terminal) as progress:
        with _cancel_on_interrupt(cancel):
            locations = search(cancel, progress.advance)
    return locations, cancel.is_cancelled


def _report(word: str, locations: List[Location], kind: str, interrupted: bool) -> int:
    if not interrupted:
        return print_locations(word, locations, kind)
    for location in locations:
        console.print(location.render(), markup=False, highlight=False, soft_wrap=True)
    console.print(f"[yellow]Search cancelled, {_plural(len(locations), 'partial result')} shown.[/yellow]")
    return 130


def cmd_definition(args: argparse.Namespace, config: ToolkitConfig) -> int:
    """Execute the definition command."""
    if not os.path.isdir(args.root):
        show_error("Workspace root not found", f"{args.root} does not exist")
        return 2
    if args.file is not None and not os.path.isfile(args.file):
        show_error("Document not found", f"{args.file} does not exist")
        return 2

    def search(cancel, progress):
        if args.file is None:
            return find_definitions(
                args.word,
                args.root,
                config.excluded_dirs,
                config.skip_name_fragment,
                cancel=cancel,
                progress=progress,
            )
        return find_definition(
            args.file,
            args.word,
            args.root,
            config.excluded_dirs,
            config.skip_name_fragment,
            cancel=cancel,
            progress=progress,
        )

    locations, interrupted = _run_search(f"Looking up '{args.word}'", search)
    return _report(args.word, locations, "definition", interrupted)


def cmd_references(args: argparse.Namespace, config: ToolkitConfig) -> int:
    """Execute the references command."""
    if not os.path.isdir(args.root):
        show_error("Workspace root not found", f"{args.root} does not exist")
        return 2

    def search(cancel, progress):
        return find_references(
            args.word,
            args.root,
            config.excluded_dirs,
            config.skip_name_fragment,
            cancel=cancel,
            progress=progress,
        )

    locations, interrupted = _run_search(f"Searching for '{args.word}'", search)
    return _report(args.word, locations, "references", interrupted)


COMMANDS = {
    "lint": cmd_lint,
    "format": cmd_format,
    "definition": cmd_definition,
    "references": cmd_references,
}


def dispatch(args: argparse.Namespace, config: ToolkitConfig) -> int:
    """Dispatch to the appropriate command handler."""
    handler = COMMANDS.get(args.action)
    if handler is None:
        console.print(f"[red]Unknown action: {args.action}[/red]")
        return 1
    return handler(args, config)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ``genor-yaml`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_and_validate_config()
    except ValidationError as exc:
        show_error("Invalid configuration", str(exc))
        return 2

    configure_logging(args.log_level or config.log_level)
    return dispatch(args, config)


if __name__ == "__main__":
    sys.exit(main())
