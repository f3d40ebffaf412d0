# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Progress display for workspace searches."""

from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

console = Console(stderr=True)


class SearchProgress:
    """Live progress bar fed by a search's ``(processed, total)`` callback.

    Use as a context manager and pass :meth:`advance` as the callback.
    """

    def __init__(self, title: str, enabled: bool = True):
        self.title = title
        self.enabled = enabled
        self.processed = 0
        self.total = 0
        self._progress: Optional[Progress] = None
        self._task = None

    def __enter__(self) -> "SearchProgress":
        if self.enabled:
            self._progress = Progress(
                SpinnerColumn(style="cyan"),
                TextColumn("[cyan]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                console=console,
                transient=True,
            )
            self._progress.start()
            self._task = self._progress.add_task(self.title, total=None)
        return self

    def __exit__(self, *exc_info):
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def advance(self, processed: int, total: int):
        self.processed = processed
        self.total = total
        if self._progress is not None:
            self._progress.update(self._task, completed=processed, total=total)
