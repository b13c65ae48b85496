"""CLI entrypoint for lead-search."""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence

from tqdm import tqdm

from .config import DEFAULT_MAX_DELAY, DEFAULT_MIN_DELAY, SearchConfig
from .errors import ConfigError, ProviderError, ValidationError
from .export import write_leads
from .logging_utils import configure_logging, get_logger
from .models import DEFAULT_MAX_RESULTS, SearchFilters
from .orchestrator import BackgroundRunner, build_orchestrator
from .progress import build_progress_store
from .validation import validate_filters

POLL_INTERVAL = 0.5


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Lead Search - find company leads through a places search provider."
    )
    parser.add_argument("--progress-dir", help="Directory holding run progress records.")
    parser.add_argument(
        "--progress-backend",
        choices=["memory", "file", "redis"],
        help="Where run progress is stored (default: file).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Run a lead search.")
    search.add_argument("--keywords", help="Free text keywords.")
    search.add_argument("--sectors", nargs="+", default=[], help="Sector labels, e.g. salud.")
    search.add_argument("--provinces", nargs="+", default=[], help="Province names.")
    search.add_argument("--regions", nargs="+", default=[], help="Region names.")
    search.add_argument("--revenue", help="Revenue band to record on every lead.")
    search.add_argument("--employees", help="Employee band to record on every lead.")
    search.add_argument(
        "--max-results", type=int, default=DEFAULT_MAX_RESULTS, help="Maximum leads (1-1000)."
    )
    search.add_argument("--output", default="leads_output.csv", help="Output file path.")
    search.add_argument("--format", choices=["csv", "json"], default="csv", help="Output format.")
    search.add_argument("--api-key", help="Places API key (or set GOOGLE_PLACES_API_KEY).")
    search.add_argument(
        "--enrich-websites",
        action="store_true",
        help="Fetch company websites to find emails and phones.",
    )
    search.add_argument(
        "--check-mx", action="store_true", help="Drop guessed emails whose domain has no MX."
    )
    search.add_argument(
        "--min-delay",
        type=float,
        default=DEFAULT_MIN_DELAY,
        help="Minimum polite delay between website requests.",
    )
    search.add_argument(
        "--max-delay",
        type=float,
        default=DEFAULT_MAX_DELAY,
        help="Maximum polite delay between website requests.",
    )
    search.add_argument("--no-progress", action="store_true", help="Disable tqdm progress bar.")

    status = commands.add_parser("status", help="Print the progress record of a run.")
    status.add_argument("run_id")

    stop = commands.add_parser("stop", help="Ask a running search to stop.")
    stop.add_argument("run_id")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI input."""
    return build_parser().parse_args(argv)


def namespace_to_config(args: argparse.Namespace) -> SearchConfig:
    """Convert CLI args to validated SearchConfig; flags override the environment."""
    return SearchConfig.from_env(
        api_key=getattr(args, "api_key", None),
        progress_dir=args.progress_dir,
        progress_backend=args.progress_backend,
        enrich_websites=getattr(args, "enrich_websites", None) or None,
        check_mx=getattr(args, "check_mx", None) or None,
        min_delay=getattr(args, "min_delay", None),
        max_delay=getattr(args, "max_delay", None),
    )


def namespace_to_filters(args: argparse.Namespace) -> SearchFilters:
    """Build validated filters from the search flags (``--revenue``, ``--employees``, ...)."""
    return validate_filters(SearchFilters.from_mapping(vars(args)))


def _follow(runner: BackgroundRunner, run_id: str, show_progress: bool) -> None:
    bar = tqdm(total=100, desc="searching", unit="%", disable=not show_progress)
    try:
        while runner.is_alive(run_id):
            try:
                runner.join(run_id, timeout=POLL_INTERVAL)
            except KeyboardInterrupt:
                get_logger().warning("Interrupted; asking run %s to stop.", run_id)
                runner.request_stop(run_id)
            record = runner.status(run_id)
            if record is not None:
                bar.n = record.progress
                bar.set_postfix_str(record.message, refresh=False)
                bar.refresh()
    finally:
        bar.close()


def run_search(args: argparse.Namespace, config: SearchConfig) -> int:
    logger = get_logger()
    filters = namespace_to_filters(args)
    store = build_progress_store(config, logger=logger)
    orchestrator = build_orchestrator(config, store=store, logger=logger)
    runner = BackgroundRunner(lambda: orchestrator, store=store, logger=logger)
    run_id = runner.start(filters)
    logger.info("Started run %s", run_id)
    _follow(runner, run_id, show_progress=not args.no_progress)
    try:
        outcome = runner.wait(run_id)
    except ProviderError as exc:
        logger.error("Search failed: %s", exc)
        return 1
    if outcome is None:
        logger.error("Run %s ended without a result.", run_id)
        return 1
    write_leads(args.output, outcome.leads, args.format)
    logger.info("Run %s %s with %d leads", run_id, outcome.status, len(outcome.leads))
    logger.info("Wrote results to %s", args.output)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = get_logger()
    try:
        config = namespace_to_config(args)
        if args.command == "search":
            return run_search(args, config)
        store = build_progress_store(config, logger=logger)
    except (ConfigError, ValidationError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    if args.command == "status":
        record = store.get(args.run_id)
        if record is None:
            logger.error("Unknown run: %s", args.run_id)
            return 1
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
        return 0

    if not store.request_stop(args.run_id):
        logger.error("Run %s is unknown or already finished.", args.run_id)
        return 1
    logger.info("Stop requested for run %s", args.run_id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
