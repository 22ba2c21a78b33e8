"""Progress bar utilities."""

import sys
from contextlib import contextmanager
from typing import Callable, Iterator

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


def create_progress(*extra_columns) -> Progress:
    """Create a standard progress bar with optional extra columns."""
    columns = [
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        MofNCompleteColumn(),
        *extra_columns,
        TimeElapsedColumn(),
        TextColumn("ETA:"),
        TimeRemainingColumn(),
    ]
    return Progress(*columns, transient=False, disable=not sys.stderr.isatty())


@contextmanager
def round_progress(total: int, description: str = "Simulating rounds") -> Iterator[Callable[..., None]]:
    """
    Progress bar over simulated rounds.

    Yields:
        Callback taking the completed round count and the current pattern count.
    """
    with create_progress(TextColumn("{task.fields[patterns]} patterns")) as progress:
        task = progress.add_task(description, total=total, patterns=0)

        def update(completed: int, patterns: int = 0) -> None:
            progress.update(task, completed=completed, patterns=patterns)

        yield update
