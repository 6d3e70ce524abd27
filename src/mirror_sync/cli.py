"""Command-line entry point for mirror-sync.

Progress is logged to stderr while the run is in flight; the final report
is printed to stdout (text, or JSON with ``--json``).

Exit status: 0 when the run completes (individual repository or
organization failures are reported, not fatal), 1 on configuration
errors, 130 when interrupted.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from . import __version__
from .config import load_config
from .config_loader import load_config_file
from .config_schema import build_config
from .engine import build_engine
from .errors import ConfigError
from .logger import setup_logging
from .mirror.reporter import format_run_report, report_to_json

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback."""
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mirror-sync",
        description="Clone or update local mirrors of every repository in one or more organizations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync every organization in ./config.yaml
  mirror-sync

  # Use an explicit config file and only one organization
  mirror-sync --config /etc/mirror-sync/config.yml --org acme

  # Show what would be cloned or pulled, without touching anything
  mirror-sync --dry-run

  # Machine-readable report
  mirror-sync --json > report.json

Config file lookup: --config, $MIRROR_SYNC_CONFIG, ./config.yaml,
./.mirror_sync/config.yml, ~/.config/mirror_sync/config.yml
        """,
    )

    parser.add_argument("--config", help="Path to the YAML config file")
    parser.add_argument(
        "--url",
        help="Override server URL (takes precedence over MIRROR_SYNC_URL and config files)",
    )
    parser.add_argument(
        "--token",
        help="Override access token (visible in process list -- prefer MIRROR_SYNC_TOKEN env var)",
    )
    parser.add_argument(
        "--org",
        action="append",
        dest="orgs",
        metavar="NAME",
        help="Only sync this organization (repeatable)",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        help="Maximum concurrent clone/pull operations (1-100, default 20)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List repositories and report planned actions without cloning or pulling",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final report as JSON",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write log records to this file")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log record format on stderr (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run one sync pass and return the process exit status."""
    args = build_parser().parse_args(argv)

    load_dotenv()

    try:
        raw = load_config_file(Path(args.config) if args.config else None)
        schema = build_config(raw)
    except ConfigError as exc:
        _stderr_print(f"Error: {exc}")
        return 1

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or schema.logging.file,
        log_format=args.log_format or schema.logging.format,
        config_level=schema.logging.level,
    )

    try:
        config = load_config(
            schema,
            url=args.url,
            token=args.token,
            max_parallel=args.max_parallel,
            insecure=args.insecure,
        )
        requests = config.org_requests(args.orgs)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        _stderr_print(f"Error: {exc}")
        return 1

    engine = build_engine(config, dry_run=args.dry_run)
    try:
        report = asyncio.run(engine.run(requests))
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        return 130

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print(format_run_report(report))
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
