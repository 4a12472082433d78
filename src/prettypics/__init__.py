"""prettypics: pick the best photos from a date range."""

from __future__ import annotations

import argparse
import queue
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from prettypics.config import DEFAULT_DAYS_BACK, DEFAULT_PERCENTAGE

__version__ = "0.1.0"

EXIT_CANCELLED = 130


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"invalid date {value!r} (use YYYY-MM-DD)") from None


def _parse_weight(value: str) -> tuple[str, float]:
    """Parse ``NAME=WEIGHT``."""
    name, sep, weight = value.rpartition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=WEIGHT, got {value!r}")
    try:
        return name.strip(), float(weight)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid weight in {value!r}") from None


def write_export(
    out_path: Path,
    selected: list[str],
    input_dir: Path,
    start: date | None,
    end: date | None,
    percentage: float,
) -> None:
    """Write the selected photo paths with a comment header."""
    timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    lines = [
        "# prettypics v0",
        f"# input: {input_dir}",
        f"# range: {start or '*'}..{end or '*'}",
        f"# percentage: {percentage:g}",
        f"# selected: {len(selected)}",
        f"# generated: {timestamp}",
        "",
    ]
    lines.extend(selected)

    out_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="prettypics",
        description="Pick the best photos from a date range.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # select command
    select_parser = subparsers.add_parser(
        "select", help="Score photos in a directory and keep the best"
    )
    select_parser.add_argument("directory", type=Path, help="Photo directory")
    select_parser.add_argument(
        "--start", default=None, help="First day (YYYY-MM-DD)"
    )
    select_parser.add_argument(
        "--end", default=None, help="Last day (YYYY-MM-DD)"
    )
    select_parser.add_argument(
        "--days",
        type=int,
        nargs="?",
        const=DEFAULT_DAYS_BACK,
        default=None,
        help=f"Only the last N days (default N: {DEFAULT_DAYS_BACK})",
    )
    select_parser.add_argument(
        "--percent",
        type=float,
        default=DEFAULT_PERCENTAGE,
        help=f"Keep top percentage (default: {DEFAULT_PERCENTAGE:g})",
    )
    select_parser.add_argument(
        "--workers", type=int, default=None, help="Photos scored in parallel"
    )
    select_parser.add_argument(
        "--assessor-workers",
        type=int,
        default=None,
        help="Max assessor calls in flight across all photos",
    )
    select_parser.add_argument(
        "--timeout", type=float, default=None, help="Seconds to wait per photo"
    )
    select_parser.add_argument(
        "--weight",
        type=_parse_weight,
        action="append",
        default=[],
        metavar="NAME=WEIGHT",
        help="Override an assessor weight (repeatable)",
    )
    select_parser.add_argument(
        "--disable",
        action="append",
        default=[],
        metavar="NAME",
        help="Disable an assessor (repeatable)",
    )
    select_parser.add_argument("--out", type=Path, default=None, help="Write selected paths")
    select_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Debug logging"
    )

    # assessors command
    subparsers.add_parser("assessors", help="List available assessors")

    args = parser.parse_args(argv)

    if args.command == "select":
        try:
            start, end = _parse_date(args.start), _parse_date(args.end)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if args.days is not None:
            end = end or date.today()
            start = end - timedelta(days=args.days)
        return cmd_select(
            args.directory,
            start,
            end,
            args.percent,
            args.workers,
            args.assessor_workers,
            args.timeout,
            dict(args.weight),
            args.disable,
            args.out,
            args.verbose,
        )
    if args.command == "assessors":
        return cmd_assessors()

    parser.print_help()
    return 1


def cmd_assessors() -> int:
    """List registered assessors and their default weights."""
    from prettypics.registry import default_registry

    snapshot = default_registry().snapshot()
    for entry in snapshot:
        print(f"{entry.name:<20} weight={entry.weight:g}")
    return 0


def cmd_select(
    directory: Path,
    start: date | None,
    end: date | None,
    percentage: float,
    workers: int | None,
    assessor_workers: int | None,
    timeout: float | None,
    weights: dict[str, float],
    disabled: list[str],
    out: Path | None,
    verbose: bool,
) -> int:
    """Score candidates and print the selection."""
    from rich.console import Console

    from prettypics.errors import PrettyPicsError
    from prettypics.library import PhotoLibrary
    from prettypics.registry import default_registry
    from prettypics.session import SelectionSession
    from prettypics.ui import create_progress, results_table, setup_logging

    console = Console()
    setup_logging(verbose, console)

    if not directory.is_dir():
        print(f"Error: {directory} is not a directory", file=sys.stderr)
        return 1
    if start and end and start > end:
        print(f"Error: start {start} is after end {end}", file=sys.stderr)
        return 1

    registry = default_registry()
    try:
        for name in disabled:
            registry.set_enabled(name, False)
        for name, weight in weights.items():
            registry.set_weight(name, weight)
        session = SelectionSession(
            registry=registry,
            library=PhotoLibrary(directory),
            percentage=percentage,
            concurrency_limit=workers,
            assessor_workers=assessor_workers,
            timeout=timeout,
        )
    except (PrettyPicsError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with session:
        total = session.load_candidates(start, end)
        if total == 0:
            print("No photos match the date range and filters", file=sys.stderr)
            return 1

        updates = session.progress.subscribe()
        with create_progress(console) as progress, ThreadPoolExecutor(max_workers=1) as pool:
            task = progress.add_task("[cyan]Scoring photos...", total=total)
            future = pool.submit(session.find_top_photos)
            while not future.done():
                try:
                    completed, _ = updates.get(timeout=0.1)
                    progress.update(task, completed=completed)
                except queue.Empty:
                    continue
                except KeyboardInterrupt:
                    progress.update(task, description="[yellow]Cancelling...")
                    session.cancel()
            result = future.result()
            progress.update(task, completed=result.completed)
        session.progress.unsubscribe(updates)

        console.print(results_table(result, list(registry.snapshot().names)))
        if result.failures:
            failed = ", ".join(f"{n}: {c}" for n, c in sorted(result.failures.items()))
            console.print(f"[yellow]Assessor failures[/yellow] {failed}")

        if out is not None:
            write_export(
                out,
                [str(s.photo_id) for s in result.selected],
                directory,
                start,
                end,
                result.percentage,
            )
            print(f"Wrote {len(result.selected)} paths to {out}")

    return EXIT_CANCELLED if result.cancelled else 0


if __name__ == "__main__":
    sys.exit(main())
