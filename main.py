"""
Command-line front end for the ML Studio client.

Thin presentation layer: builds a StudioContext, subscribes to its outcome
bus and prints what happens.

Examples:
    python main.py status
    python main.py upload data/iris.csv
    python main.py analyze random_forest clustering
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from mlstudio import (
    DEFAULT_ALGORITHMS,
    CandidateFile,
    NetworkError,
    Outcome,
    OutcomeType,
    ServiceError,
    StudioContext,
    ValidationError,
    load_settings,
)
from mlstudio.shared.logger import get_logger, setup_logging

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REJECTED = 2

MAX_COLUMN_TAGS = 8


def _render_metadata(metadata: dict) -> None:
    print(f"  Rows:    {metadata['rows']:,}")
    print(f"  Columns: {metadata['columns']}")
    print(f"  Size:    {metadata.get('memory_usage') or 'N/A'}")
    columns = list(metadata.get("columns_list") or [])
    if columns:
        tags = ", ".join(columns[:MAX_COLUMN_TAGS])
        if len(columns) > MAX_COLUMN_TAGS:
            tags += f" (+{len(columns) - MAX_COLUMN_TAGS} more)"
        print(f"  Names:   {tags}")
    if (metadata.get("duplicates_removed") or 0) > 0:
        print(f"  Removed {metadata['duplicates_removed']} duplicate rows")


def _render_analysis(data: dict) -> None:
    print("Analysis Results")
    for entry in data["results"]:
        if entry["error"]:
            print(f"  x {entry['algorithm']}: {entry['error']}")
            continue
        metrics = ", ".join(
            f"{name}={value:.4f}" for name, value in entry["metrics"].items() if value is not None
        )
        print(f"  - {entry['algorithm']} [{entry['model_type']}] {metrics}")

    winner = data["winner"]
    if winner:
        print(f"Best algorithm: {winner['algorithm']} ({winner['display_score']})")
    best = data["best_classification"]
    if best:
        print(
            f"  accuracy={best['accuracy'] * 100:.1f}% f1={best['f1_score']} "
            f"precision={best['precision']} recall={best['recall']}"
        )


def render(outcome: Outcome) -> None:
    """Print an outcome."""
    data = outcome.data
    if outcome.type == OutcomeType.CONNECTIVITY_CHANGED:
        status = "Backend Connected - Server Ready" if data["connected"] else "Backend Disconnected"
        print(f"{status} ({data['base_url']})")
    elif outcome.type == OutcomeType.DATASET_RESTORED:
        print(f"Restored dataset: {data['reference']}")
        _render_metadata(data["metadata"])
    elif outcome.type == OutcomeType.DATASET_CLEARED:
        print("Dataset cleared")
    elif outcome.type == OutcomeType.UPLOAD_STARTED:
        print(f"Uploading {data['filename']} ({data['size']})...")
    elif outcome.type == OutcomeType.UPLOAD_SUCCEEDED:
        print(f"Upload Successful! {data['filename']} -> {data['reference']}")
        _render_metadata(data["metadata"])
    elif outcome.type == OutcomeType.UPLOAD_FAILED:
        print(f"Upload failed: {data['message']}", file=sys.stderr)
    elif outcome.type == OutcomeType.ANALYSIS_STARTED:
        print(f"Running {', '.join(data['algorithms'])}...")
    elif outcome.type == OutcomeType.ANALYSIS_SUCCEEDED:
        _render_analysis(data)
    elif outcome.type == OutcomeType.ANALYSIS_FAILED:
        print(f"Analysis failed: {data['message']}", file=sys.stderr)


async def run_command(args: argparse.Namespace, studio: StudioContext) -> int:
    """Execute one CLI command against an open context."""
    state = studio.state

    if args.command in ("status", "health"):
        if args.command == "status":
            print(f"Dataset:   {state.reference or '-'}")
            print(f"Connected: {state.connected}")
        return EXIT_OK if state.connected else EXIT_FAILED

    if args.command == "reset":
        state.reset()
        return EXIT_OK

    if args.command == "upload":
        outcome = await studio.upload.submit(CandidateFile.from_path(args.path))
        return EXIT_OK if outcome is not None and outcome.succeeded else EXIT_FAILED

    if args.command == "analyze":
        outcome = await studio.analysis.run(args.algorithms or DEFAULT_ALGORITHMS)
        return EXIT_OK if outcome.succeeded else EXIT_FAILED

    if args.command == "info":
        metadata = await state.refresh_dataset_info()
        print(f"Dataset: {state.reference}")
        _render_metadata(metadata.model_dump())
        return EXIT_OK

    if args.command == "columns":
        for name in await state.dataset_columns(refresh=args.refresh):
            print(name)
        return EXIT_OK

    raise ValueError(f"Unknown command: {args.command}")


async def main_async(args: argparse.Namespace) -> int:
    settings = load_settings(args.settings, overrides={"api_url": args.api_url})
    setup_logging(args.log_level or settings.log_level)

    studio = StudioContext(settings, background_health_checks=False)
    studio.bus.subscribe(render)
    async with studio:
        try:
            return await run_command(args, studio)
        except ValidationError as e:
            print(e.message, file=sys.stderr)
            return EXIT_REJECTED
        except (NetworkError, ServiceError) as e:
            print(e.message, file=sys.stderr)
            return EXIT_FAILED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ML Studio client")
    parser.add_argument("--api-url", help="Backend URL (default: MLSTUDIO_API_URL or settings file)")
    parser.add_argument("--settings", type=Path, help="YAML settings file")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Show the active dataset and connectivity")
    sub.add_parser("health", help="Probe the backend; exit 0 when reachable")
    sub.add_parser("reset", help="Forget the active dataset")

    upload = sub.add_parser("upload", help="Upload a CSV/XLSX/XLS dataset")
    upload.add_argument("path", type=Path)

    analyze = sub.add_parser("analyze", help="Run algorithms on the active dataset")
    analyze.add_argument(
        "algorithms",
        nargs="*",
        help=f"Algorithm ids (default: {' '.join(DEFAULT_ALGORITHMS)})",
    )

    sub.add_parser("info", help="Reload the active dataset's metadata")
    columns = sub.add_parser("columns", help="List the active dataset's columns")
    columns.add_argument("--refresh", action="store_true", help="Ask the backend instead of the cached metadata")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(main_async(args))
    except FileNotFoundError as e:
        print(f"File not found: {e.filename}", file=sys.stderr)
        return EXIT_REJECTED


if __name__ == "__main__":
    sys.exit(main())
