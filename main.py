import argparse
import sys
from typing import List, Optional

# --- Settings/Logging ---
from roster_store.logging.setup import setup_logging
from roster_store.config.settings import settings

setup_logging()

from loguru import logger

# --- End Settings/Logging ---

from roster_store.competition import Competition
from roster_store.models.enums import SinkType, SourceFormat
from roster_store.parsers.base_parser import ParserError
from roster_store.sources.loader import SourceError
from roster_store.normalization.normalizer import NormalizationError

from rich import print
from rich.panel import Panel


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load competition teams and save them to a database or CSV files."
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in SourceFormat],
        default=settings.source_format.value,
        help="Participants document format.",
    )
    parser.add_argument(
        "--source",
        default=settings.source_location,
        help="File path or http(s) URL of the participants document.",
    )
    parser.add_argument(
        "--sink",
        choices=[s.value for s in SinkType],
        default=settings.sink.value,
        help="Where to save the normalized roster.",
    )
    parser.add_argument(
        "--output-dir",
        default=settings.csv_output_dir,
        help="Output directory for the csv sink.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    if not args.source:
        logger.critical("No participants source given (--source or SOURCE_LOCATION).")
        return 2

    logger.info(f"Loading participants from {args.source} ({args.format})")
    competition = Competition()
    try:
        teams = competition.load_participants(args.format, args.source)
    except (SourceError, ParserError) as e:
        logger.error(f"Could not load participants: {e}")
        return 1

    if not teams:
        logger.warning("Participants document contains no teams.")

    try:
        outcome = competition.save_participants(args.sink, output_dir=args.output_dir)
    except NormalizationError as e:
        logger.error(f"Could not normalize participants: {e}")
        return 1

    if args.sink == SinkType.CSV.value:
        files = "\n".join(str(p) for p in outcome)
        print(Panel(files, title="CSV export", border_style="green"))
        return 0

    if outcome.success:
        summary = "\n".join(
            f"{table}: {count} rows" for table, count in outcome.rows_written.items()
        )
        print(Panel(summary, title="Saved to database", border_style="green"))
        return 0

    error = outcome.error
    print(
        Panel(
            f"{error.kind}: {error.message}\n"
            f"table={error.table} sqlstate={error.sqlstate} code={error.driver_code}",
            title="Save failed",
            border_style="red",
        )
    )
    return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
