from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..excel.reader import WorkbookError, split_subject_list
from ..excel.writer import WriteFailure
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..services.delay import FixedDelay
from ..services.enrichment import EnrichmentClient
from ..services.pipeline import PipelineError, RunOptions, run
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, build AppConfig (missing credential -> exit 1 before any work)
- Validate mode arguments (--create needs --list, otherwise --file must exist)
- Run the pipeline; any fatal error is logged once and turns into exit 1
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/boatinfo.yml")

EXAMPLES = """examples:
  %(prog)s -f data.xlsx -s "Boat Data" -c "Boat Type" -t "Details"
      Process boat types from an existing file
  %(prog)s --create --list "Yacht,Sailboat,Catamaran" -o boats.xlsx
      Create a new file with specified boat types
"""


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; values in the file win over the process env."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid delay: {value!r}") from e
    if number < 0:
        raise argparse.ArgumentTypeError(f"delay must be >= 0, got {number}")
    return number


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="boatinfo",
        description="Fill a spreadsheet column with boat type descriptions from the Perplexity API",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-f", "--file", help="Path to the Excel file")
    p.add_argument("-s", "--sheet", default="Sheet1", help="Name of the sheet containing the boat types")
    p.add_argument("-c", "--column", default="Boat Type", help="Name of the column containing boat types")
    p.add_argument("-t", "--target", default="Information", help="Name of the column to write information to")
    p.add_argument(
        "-d", "--delay", type=_non_negative_int, default=1000, help="Delay between API calls (in milliseconds)"
    )
    p.add_argument("--create", action="store_true", help="Create a new file with the specified boat types")
    p.add_argument("-l", "--list", dest="subjects", help="Comma-separated list of boat types (for creating a new file)")
    p.add_argument("-o", "--output", default="boat-types.xlsx", help="Output file path for the new Excel file")
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Optional YAML settings file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _build_options(args: argparse.Namespace) -> RunOptions:
    return RunOptions(
        file=Path(args.file) if args.file else None,
        sheet=args.sheet,
        column=args.column,
        target=args.target,
        create=args.create,
        subjects=tuple(split_subject_list(args.subjects)) if args.subjects else (),
        output=Path(args.output),
    )


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when argv is None; [] means "no arguments".
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(Path(args.config), os.environ)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    options = _build_options(args)
    if options.create:
        if not options.subjects:
            logger.error("--list parameter is required when using --create")
            return EXIT_FATAL
    else:
        if options.file is None:
            logger.error("--file parameter is required when processing an existing file")
            return EXIT_FATAL
        if not options.file.exists():
            logger.error(f"File not found: {options.file}")
            return EXIT_FATAL

    logger.debug(f"model={cfg.model} url={cfg.api_url}")
    client = EnrichmentClient(cfg)
    try:
        result = run(options, client, FixedDelay(args.delay), ErrorLogBuffer(cfg.error_log_dir))
    except (PipelineError, WorkbookError, WriteFailure) as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except Exception as e:
        logger.error(f"processing: {type(e).__name__}: {e}")
        logger.debug("unhandled error", exc_info=True)
        return EXIT_FATAL

    log_summary(render_summary_line(result)[len("SUMMARY "):])
    logger.info("Process completed successfully!")
    return EXIT_SUCCESS
