"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import config, Config
from src.jobs.orchestrator import JobOrchestrator
from src.jobs.scheduler import run_service
from src.logging_conf import setup_logging
from src.scrapers.registry import SCRAPERS
from src.store.spool import SpoolStore
from src.store.supabase_store import SupabaseStore

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Raffle odds scraper")

    # Job selection
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--quick",
        action="store_true",
        help="Quick update: listing pages only, refresh percent sold and price",
    )
    mode.add_argument(
        "--cleanup",
        action="store_true",
        help="Mark expired raffles drawn and snapshot live ones",
    )
    mode.add_argument(
        "--service",
        action="store_true",
        help="Run as a long-lived service on the built-in schedule",
    )

    parser.add_argument(
        "--site",
        choices=sorted(SCRAPERS),
        default=None,
        help="Only run the scraper for this site slug",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Sites scraped in parallel (default: {config.CONCURRENCY})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run: no Supabase writes, rows spooled to data/spool/",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {config.LOG_LEVEL})",
    )
    return parser.parse_args(argv)


def build_orchestrator(dry_run: bool) -> JobOrchestrator:
    store = SpoolStore(SCRAPERS) if dry_run else SupabaseStore()
    return JobOrchestrator(store)


async def run(args: argparse.Namespace) -> int:
    """Run the selected job; exit code 1 when any source failed."""
    orchestrator = build_orchestrator(args.dry_run)

    if args.service:
        await run_service(orchestrator)
        return 0

    try:
        if args.cleanup:
            report = await orchestrator.run_cleanup()
        elif args.quick:
            report = await orchestrator.run_quick(args.site, args.concurrency)
        else:
            report = await orchestrator.run_full(args.site, args.concurrency)
    finally:
        await orchestrator.browser.close()

    if report is None:
        return 0
    if report.cleanup is not None and report.cleanup.error_message:
        return 1
    return 1 if any(outcome.status.value == "failed" for outcome in report.outcomes) else 0


def main() -> None:
    """Main entry point."""
    args = parse_args()
    setup_logging(args.log_level)

    if args.concurrency is not None and args.concurrency < 1:
        logger.error("--concurrency must be at least 1")
        sys.exit(1)

    # Validate config (skip Supabase validation in dry-run)
    try:
        Config.validate(require_supabase=not args.dry_run)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if args.dry_run:
        logger.info("DRY-RUN mode: Supabase writes disabled")

    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
