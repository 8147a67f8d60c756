#!/usr/bin/env python3
"""Run one or all scrapers and print PASS/WARN/FAIL checks. Nothing is persisted."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.browser.session import BrowserManager
from src.jobs.validation import format_report, validate_result
from src.logging_conf import setup_logging
from src.scrapers.registry import SCRAPERS, get_all_scrapers

logger = logging.getLogger(__name__)


async def validate(slugs: list[str]) -> bool:
    browser = BrowserManager()
    all_passed = True
    try:
        for slug in slugs:
            scraper = SCRAPERS[slug]
            context = await browser.new_context()
            try:
                result = await scraper.scrape(context)
            finally:
                await context.close()
            report = validate_result(result)
            print("\n".join(format_report(report)))
            all_passed = all_passed and report.passed
    finally:
        await browser.close()
    return all_passed


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate scraper output without persisting")
    parser.add_argument("--site", choices=sorted(SCRAPERS), default=None, help="Validate one site only")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    args = parser.parse_args()

    setup_logging(args.log_level)
    slugs = [args.site] if args.site else [scraper.site_slug for scraper in get_all_scrapers()]
    passed = asyncio.run(validate(slugs))
    sys.exit(0 if passed else 1)


if __name__ == "__main__":
    main()
