"""PASS/WARN/FAIL checks over a scraper's output, without persisting anything."""
import re
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from src.parse.classify import classify_prize_type
from src.parse.models import ScrapedRaffle, ScraperResult

HTML_TAG_RE = re.compile(r"<[^>]+>")
MIN_TITLE, MAX_TITLE = 5, 300
COVERAGE_WARN_THRESHOLD = 0.7


class CheckLevel(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class CheckResult(BaseModel):
    level: CheckLevel
    message: str
    details: list[str] = Field(default_factory=list)


class Coverage(BaseModel):
    count: int
    total: int
    percent: int


class ValidationReport(BaseModel):
    scraper_name: str
    site_slug: str
    duration_ms: int
    raffle_count: int
    error_count: int
    critical_checks: list[CheckResult] = Field(default_factory=list)
    quality_checks: list[CheckResult] = Field(default_factory=list)
    coverage: dict[str, Coverage] = Field(default_factory=dict)
    classification: dict[str, int] = Field(default_factory=dict)

    @property
    def critical_failures(self) -> int:
        return sum(1 for check in self.critical_checks if check.level == CheckLevel.FAIL)

    @property
    def warnings(self) -> int:
        return sum(1 for check in self.quality_checks if check.level == CheckLevel.WARN)

    @property
    def passed(self) -> bool:
        return self.critical_failures == 0


def _check(failing: list, fail_message: str, pass_message: str, details: list[str]) -> CheckResult:
    if failing:
        return CheckResult(level=CheckLevel.FAIL, message=fail_message, details=details)
    return CheckResult(level=CheckLevel.PASS, message=pass_message)


def _bad_title(title: Optional[str]) -> bool:
    if not title or not title.strip():
        return True
    return not (MIN_TITLE <= len(title) <= MAX_TITLE) or bool(HTML_TAG_RE.search(title))


def run_critical_checks(result: ScraperResult) -> list[CheckResult]:
    raffles = result.raffles
    checks = []

    if raffles:
        checks.append(CheckResult(level=CheckLevel.PASS, message=f"At least 1 raffle returned ({len(raffles)})"))
    else:
        checks.append(CheckResult(level=CheckLevel.FAIL, message="No raffles returned (0 found)"))

    empty_ids = [r for r in raffles if not r.external_id.strip()]
    checks.append(_check(empty_ids, f"{len(empty_ids)} raffle(s) have empty external_id",
                         "All external_ids non-empty", []))

    bad_titles = [r for r in raffles if _bad_title(r.title)]
    checks.append(_check(
        bad_titles,
        f"{len(bad_titles)} raffle(s) have invalid titles",
        f"All titles valid (length {MIN_TITLE}-{MAX_TITLE}, no HTML)",
        [f'"{(r.title or "(empty)")[:60]}" (len={len(r.title or "")})' for r in bad_titles[:3]],
    ))

    bad_urls = [r for r in raffles if not r.source_url.startswith("http")]
    checks.append(_check(
        bad_urls,
        f"{len(bad_urls)} raffle(s) have invalid source_url",
        "All source_urls valid",
        [f'"{r.external_id}": {r.source_url or "(empty)"}' for r in bad_urls[:3]],
    ))

    duplicates = [(eid, n) for eid, n in Counter(r.external_id for r in raffles).items() if n > 1]
    checks.append(_check(
        duplicates,
        f"{len(duplicates)} duplicate external_id(s)",
        "No duplicate external_ids",
        [f'"{eid}" appears {n} times' for eid, n in duplicates[:5]],
    ))

    fatal = [e for e in result.errors if e.lower().startswith("fatal")]
    non_fatal = f" ({len(result.errors)} non-fatal)" if result.errors else ""
    checks.append(_check(fatal, f"{len(fatal)} fatal error(s)", f"No fatal errors{non_fatal}", fatal[:3]))
    return checks


def _field_predicates(now: datetime) -> dict[str, Callable[[ScrapedRaffle], bool]]:
    return {
        "ticket_price": lambda r: bool(r.ticket_price and r.ticket_price > 0),
        "image_url": lambda r: bool(r.image_url and r.image_url.startswith("http")),
        "end_date": lambda r: r.end_date is not None and r.end_date > now,
        "total_tickets": lambda r: bool(r.total_tickets and r.total_tickets > 0),
        "cash_alternative or prize_value": lambda r: bool(
            (r.cash_alternative and r.cash_alternative > 0) or (r.prize_value and r.prize_value > 0)
        ),
        "percent_sold": lambda r: r.percent_sold is not None and 0 <= r.percent_sold <= 100,
    }


def run_quality_checks(raffles: list[ScrapedRaffle], now: Optional[datetime] = None) -> list[CheckResult]:
    """Field coverage; below 70% is a warning."""
    if not raffles:
        return []
    now = now or datetime.now(timezone.utc)
    total = len(raffles)
    checks = []
    for name, predicate in _field_predicates(now).items():
        passing = [r for r in raffles if predicate(r)]
        share = len(passing) / total
        message = f"{name}: {len(passing)}/{total} ({round(share * 100)}%)"
        if share >= COVERAGE_WARN_THRESHOLD:
            checks.append(CheckResult(level=CheckLevel.PASS, message=message))
        else:
            missing = [r for r in raffles if not predicate(r)]
            checks.append(CheckResult(
                level=CheckLevel.WARN,
                message=message,
                details=[f'missing on: "{r.external_id}"' for r in missing[:3]],
            ))
    return checks


def compute_coverage(raffles: list[ScrapedRaffle]) -> dict[str, Coverage]:
    total = len(raffles)
    if not total:
        return {}
    fields: dict[str, Callable[[ScrapedRaffle], bool]] = {
        "ticket_price": lambda r: bool(r.ticket_price and r.ticket_price > 0),
        "total_tickets": lambda r: bool(r.total_tickets and r.total_tickets > 0),
        "image_url": lambda r: bool(r.image_url),
        "end_date": lambda r: r.end_date is not None,
        "cash_alternative": lambda r: bool(r.cash_alternative and r.cash_alternative > 0),
        "prize_value": lambda r: bool(r.prize_value and r.prize_value > 0),
        "percent_sold": lambda r: r.percent_sold is not None,
        "tickets_sold": lambda r: r.tickets_sold is not None,
        # Value per pound and expected value both need all three
        "value_score": lambda r: bool(
            (r.prize_value or r.cash_alternative) and r.total_tickets and r.ticket_price
        ),
    }
    coverage = {}
    for name, predicate in fields.items():
        count = sum(1 for r in raffles if predicate(r))
        coverage[name] = Coverage(count=count, total=total, percent=round(count / total * 100))
    return coverage


def compute_classification(raffles: list[ScrapedRaffle]) -> dict[str, int]:
    return dict(Counter(classify_prize_type(r.title).value for r in raffles))


def validate_result(result: ScraperResult, now: Optional[datetime] = None) -> ValidationReport:
    return ValidationReport(
        scraper_name=result.site_name,
        site_slug=result.site_slug,
        duration_ms=result.duration_ms,
        raffle_count=len(result.raffles),
        error_count=len(result.errors),
        critical_checks=run_critical_checks(result),
        quality_checks=run_quality_checks(result.raffles, now),
        coverage=compute_coverage(result.raffles),
        classification=compute_classification(result.raffles),
    )


def format_report(report: ValidationReport) -> list[str]:
    """Printable lines for one report."""
    lines = [
        "",
        "=" * 50,
        f"  SCRAPER VALIDATION: {report.scraper_name}",
        f"  ({report.site_slug})",
        "=" * 50,
        "",
        f"Ran full scrape in {report.duration_ms / 1000:.1f}s: "
        f"{report.raffle_count} raffles, {report.error_count} errors",
        "",
        "--- Critical Checks ---",
    ]
    for check in report.critical_checks:
        lines.append(f"  {check.level.value}  {check.message}")
        lines.extend(f"       {detail}" for detail in check.details)
    lines += ["", "--- Data Quality ---"]
    for check in report.quality_checks:
        lines.append(f"  {check.level.value}  {check.message}")
        lines.extend(f"       {detail}" for detail in check.details)
    if report.coverage:
        lines += ["", "--- Coverage Summary ---"]
        width = max(len(name) for name in report.coverage) + 2
        for name, cov in report.coverage.items():
            lines.append(f"  {name.ljust(width)} {f'{cov.count}/{cov.total}':>8}   {cov.percent:>3}%")
    if report.classification:
        lines += ["", "--- Classification ---"]
        for prize_type, n in sorted(report.classification.items(), key=lambda item: -item[1]):
            lines.append(f"  {prize_type:<12} {n}")
    lines += [
        "",
        f"RESULT: {'PASS' if report.passed else 'FAIL'} "
        f"({report.critical_failures} critical failures, {report.warnings} warnings)",
    ]
    return lines
