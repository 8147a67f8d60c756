"""Tests for the scraper validation report."""
from datetime import timedelta

from src.jobs.validation import CheckLevel, format_report, run_critical_checks, run_quality_checks, validate_result
from src.parse.models import ScrapedRaffle, ScraperResult


def raffle(external_id="bmw-m3", title="Win a BMW M3 Competition", source_url=None, **fields):
    return ScrapedRaffle(
        external_id=external_id,
        title=title,
        source_url=source_url or f"https://www.botb.com/{external_id}",
        **fields,
    )


def result(raffles, errors=()):
    return ScraperResult(site_name="BOTB", site_slug="botb", raffles=raffles, errors=list(errors), duration_ms=2500)


def levels(checks):
    return [check.level for check in checks]


def test_clean_result_passes(now):
    complete = raffle(
        ticket_price=85,
        image_url="https://cdn.botb.com/m3.jpg",
        end_date=now + timedelta(days=2),
        total_tickets=10000,
        cash_alternative=6_000_000,
        percent_sold=42,
    )
    report = validate_result(result([complete], errors=["other: detail page timed out after 45s"]), now)
    assert report.passed
    assert report.critical_failures == 0
    assert report.warnings == 0
    assert report.classification == {"car": 1}
    assert report.coverage["value_score"].percent == 100


def test_empty_result_fails():
    checks = run_critical_checks(result([]))
    assert checks[0].level == CheckLevel.FAIL


def test_bad_titles_urls_and_duplicates():
    checks = run_critical_checks(result([
        raffle("a", title="<b>Win</b> a car"),
        raffle("a", source_url="/relative/path"),
        raffle(" ", title="Win"),
    ]))
    assert levels(checks) == [
        CheckLevel.PASS,
        CheckLevel.FAIL,
        CheckLevel.FAIL,
        CheckLevel.FAIL,
        CheckLevel.FAIL,
        CheckLevel.PASS,
    ]


def test_fatal_error_fails():
    checks = run_critical_checks(result([raffle()], errors=["Fatal: listing page failed"]))
    assert checks[-1].level == CheckLevel.FAIL


def test_low_coverage_warns(now):
    checks = run_quality_checks([raffle("a"), raffle("b", ticket_price=99)], now)
    by_field = {check.message.split(":")[0]: check for check in checks}
    assert by_field["ticket_price"].level == CheckLevel.WARN
    assert by_field["ticket_price"].details == ['missing on: "a"']
    assert by_field["percent_sold"].level == CheckLevel.WARN


def test_past_end_dates_do_not_count(now):
    checks = run_quality_checks([raffle(end_date=now - timedelta(hours=1))], now)
    end_date = next(check for check in checks if check.message.startswith("end_date"))
    assert end_date.level == CheckLevel.WARN


def test_format_report(now):
    report = validate_result(result([raffle(ticket_price=85)]), now)
    lines = format_report(report)
    assert "  SCRAPER VALIDATION: BOTB" in lines
    assert lines[-1].startswith("RESULT: PASS")
