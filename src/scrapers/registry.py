"""Scraper registry: site slug to strategy instance."""
from typing import Optional

from src.scrapers.base import BaseScraper
from src.scrapers.botb import BotbScraper
from src.scrapers.click_competitions import ClickCompetitionsScraper
from src.scrapers.dream_car_giveaways import DreamCarGiveawaysScraper
from src.scrapers.elite_competitions import EliteCompetitionsScraper
from src.scrapers.llf_games import LlfGamesScraper
from src.scrapers.lucky_day_competitions import LuckyDayCompetitionsScraper
from src.scrapers.rev_comps import RevCompsScraper
from src.scrapers.seven_days_performance import SevenDaysPerformanceScraper

SCRAPERS: dict[str, BaseScraper] = {
    scraper.site_slug: scraper
    for scraper in (
        DreamCarGiveawaysScraper(),
        SevenDaysPerformanceScraper(),
        BotbScraper(),
        EliteCompetitionsScraper(),
        RevCompsScraper(),
        ClickCompetitionsScraper(),
        LlfGamesScraper(),
        LuckyDayCompetitionsScraper(),
    )
}


def get_all_scrapers() -> list[BaseScraper]:
    return list(SCRAPERS.values())


def get_scraper(slug: str) -> Optional[BaseScraper]:
    return SCRAPERS.get(slug)
