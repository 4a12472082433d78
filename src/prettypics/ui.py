"""UI utilities for the prettypics CLI."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from prettypics.analyzer import RankedResult


def create_progress(console: Console | None = None) -> Progress:
    """Progress bar with spinner, description, bar, percentage, count and time."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("({task.completed}/{task.total})"),
        TimeElapsedColumn(),
        console=console,
    )


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route log records through rich. WARNING by default, DEBUG if verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def results_table(result: RankedResult, assessor_names: list[str]) -> Table:
    """Ranked selection with the per-assessor breakdown."""
    title = f"Top {len(result.selected)} of {result.completed} photos"
    if result.cancelled:
        title += " (cancelled, partial)"
    table = Table(title=title)
    table.add_column("Rank", justify="right")
    table.add_column("Score", justify="right")
    for name in assessor_names:
        table.add_column(name, justify="right")
    table.add_column("File")

    for i, score in enumerate(result.selected, 1):
        cells = []
        for name in assessor_names:
            if name in score.failed:
                cells.append("[red]fail[/red]")
            elif name in score.scores:
                cells.append(f"{score.scores[name]:.2f}")
            else:
                cells.append("-")
        table.add_row(str(i), f"{score.total:.3f}", *cells, Path(str(score.photo_id)).name)
    return table
