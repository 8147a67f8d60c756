"""Tests for the per-site card and detail parsers, fed with captured page text."""
from datetime import datetime, timedelta

from src.parse.dates import UK_TZ
from src.parse.models import ListingCard
from src.scrapers import (
    botb,
    click_competitions,
    dream_car_giveaways,
    elite_competitions,
    llf_games,
    lucky_day_competitions,
    rev_comps,
    seven_days_performance,
)


def uk(year, month, day, hour=21, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=UK_TZ)


def link(url, text="", link_text=None, headings=None, image_url=None, href=None, has_image=True):
    return {
        "url": url,
        "href": href if href is not None else url,
        "text": text,
        "link_text": link_text if link_text is not None else text,
        "has_image": has_image,
        "image_url": image_url,
        "headings": headings or [],
    }


# --- Dream Car Giveaways -------------------------------------------------

DCG_URL = "https://dreamcargiveaways.co.uk/competitions/bmw-m4-competition"


def test_dream_car_card():
    card = dream_car_giveaways.parse_card(link(
        DCG_URL,
        "BMW M4 Competition xDrive\n£1.49\n45% sold\n3 days",
        href="/competitions/bmw-m4-competition",
        image_url="https://media.dreamcargiveaways.co.uk/m4.jpg",
    ))
    assert card.title == "BMW M4 Competition xDrive"
    assert card.ticket_price == 149
    assert card.percent_sold == 45


def test_dream_car_skips_category_and_imageless_links():
    category = link("https://dreamcargiveaways.co.uk/competitions/cars", "Cars £1", href="/competitions/cars")
    no_image = link(DCG_URL, "BMW M4 Competition xDrive\n£1.49", href="/competitions/bmw-m4", has_image=False)
    assert dream_car_giveaways.parse_card(category) is None
    assert dream_car_giveaways.parse_card(no_image) is None


def test_dream_car_detail(now):
    card = ListingCard(title="BMW M4", url=DCG_URL, ticket_price=149, percent_sold=40, image_url="https://img/m4.jpg")
    snapshot = {
        "title": "BMW M4 Competition & £5,000 or £60,000 Tax Free | Dream Car Giveaways",
        "body_text": "45%\nsold\n12,000 entries\n£1.49\nEnter Now\nLive Draw\nCompetition closes in\n3\nDays\n4\nHours",
        "html": "",
    }
    raffle = dream_car_giveaways.parse_detail(snapshot, card, now)
    assert raffle.external_id == "bmw-m4-competition"
    assert raffle.title == "BMW M4 Competition & £5,000 or £60,000 Tax Free"
    assert raffle.cash_alternative == 6_000_000
    assert raffle.additional_cash == 500_000
    assert raffle.total_tickets == 12000
    assert raffle.percent_sold == 45
    assert raffle.tickets_sold == 5400
    assert raffle.ticket_price == 149
    assert raffle.draw_type == "live"
    assert raffle.end_date == now + timedelta(days=3, hours=4)
    assert raffle.image_url == "https://img/m4.jpg"


# --- 7days Performance ---------------------------------------------------

SEVEN_URL = "https://7daysperformance.co.uk/product/vw-golf-gti"
SEVEN_CARD_TEXT = (
    "Draw on Monday 10pm\nWin This VW Golf GTI + £2,000 Cash!\nCash Alternative: £22,500\n"
    "£19.99\nsold: 21 %\nEnter now"
)


def test_seven_days_card():
    card = seven_days_performance.parse_card(link(SEVEN_URL, SEVEN_CARD_TEXT))
    assert card.title == "Win This VW Golf GTI + £2,000 Cash!"
    assert card.ticket_price == 1999
    assert card.percent_sold == 21
    assert card.cash_alternative == 2_250_000


def test_seven_days_detail():
    card = seven_days_performance.parse_card(link(SEVEN_URL, SEVEN_CARD_TEXT))
    snapshot = {
        "title": "Win This VW Golf GTI + £2,000 Cash! - 7days Performance",
        "body_text": (
            "SOLD: 21 % 1,050 / 5,000\n"
            "The total amount of entries for this competition is (5,000)\n"
            "The draw for this competition will take place on 14/02/2026\n"
            "Enter for £19.99!\nAutomated Draw System"
        ),
        "html": "",
    }
    raffle = seven_days_performance.parse_detail(snapshot, card)
    assert raffle.title == "Win This VW Golf GTI + £2,000 Cash!"
    assert raffle.total_tickets == 5000
    assert raffle.tickets_sold == 1050
    assert raffle.ticket_price == 1999
    assert raffle.additional_cash == 200_000
    assert raffle.cash_alternative == 2_250_000
    assert raffle.end_date == uk(2026, 2, 14, 22)
    assert raffle.draw_type == "automated"


# --- BOTB ----------------------------------------------------------------

BOTB_URL = "https://www.botb.com/competitions/dream-car/bmw-m3"


def test_botb_card(now):
    card = botb.parse_card(link(
        BOTB_URL,
        "BMW M3 Competition\nWin this car or £60,000 cash\nStarting from £0.85\nSold 42%\nEnds Sunday",
        headings=["BMW M3 Competition"],
    ))
    assert card.title == "BMW M3 Competition"
    assert card.ticket_price == 85
    assert card.percent_sold == 42
    assert card.cash_alternative == 6_000_000
    assert card.end_date_text == "Ends Sunday"
    assert botb.parse_end_date(card.end_date_text, now) == uk(2026, 1, 11, 23, 59)


def test_botb_skips_promos_and_priceless_cards():
    promo = link(BOTB_URL, "Free Tech in App\nStarting from £0.50", headings=["Free Tech in App"])
    priceless = link(BOTB_URL, "BMW M3 Competition\nSold 42%", headings=["BMW M3 Competition"])
    assert botb.parse_card(promo) is None
    assert botb.parse_card(priceless) is None


def test_botb_external_id_is_the_path():
    assert botb.botb_external_id(BOTB_URL) == "competitions-dream-car-bmw-m3"
    assert botb.botb_external_id("https://www.botb.com/", "Lifestyle Bundle") == "lifestyle-bundle"


def test_botb_never_visits_detail_pages():
    scraper = botb.BotbScraper()
    card = ListingCard(title="BMW M3", url=BOTB_URL, ticket_price=85)
    assert scraper.wants_detail(card) is False
    assert scraper.card_to_raffle(card).external_id == "competitions-dream-car-bmw-m3"


# --- Elite Competitions --------------------------------------------------

ELITE_URL = "https://elitecompetitions.co.uk/competitions/audi-rs6/"


def test_elite_merges_card_occurrences():
    """The same competition in two homepage sections fills gaps from both."""
    cards = elite_competitions.parse_cards([
        link(ELITE_URL, "Audi RS6 Avant\n£85,000 Cash Alternative\n£2.99\n37% SOLD\nEnds in 2 days"),
        link(ELITE_URL, "Audi RS6 Avant\nEnter Now", image_url="https://elitecompetitions.co.uk/rs6.jpg"),
        link("https://elitecompetitions.co.uk/competitions/coming-soon/x/", "Mystery Car\n£1.00"),
    ])
    assert len(cards) == 1
    card = cards[0]
    assert card.title == "Audi RS6 Avant"
    assert card.ticket_price == 299
    assert card.percent_sold == 37
    assert card.cash_alternative == 8_500_000
    assert card.end_date_text == "Ends in 2 days"
    assert card.image_url == "https://elitecompetitions.co.uk/rs6.jpg"


def test_elite_prize_pot():
    assert elite_competitions.parse_cash_from_card("£3 Million Prize Pot") == 300_000_000


def test_elite_card_end_date(now):
    assert elite_competitions.parse_card_end_date("Ends in 2 days", now) == uk(2026, 1, 12)
    assert elite_competitions.parse_card_end_date("Ends Tomorrow", now) == uk(2026, 1, 11)
    assert elite_competitions.parse_card_end_date("Just launched", now) is None


def test_elite_detail(now):
    card = ListingCard(title="Audi RS6", url=ELITE_URL, ticket_price=299, percent_sold=37)
    snapshot = {
        "title": "",
        "body_text": (
            "Total amount of entries: 9,999\n"
            "Draw date and time: Wednesday 11th February 2026 at 9pm\n"
            "Entry price: 99p\n£85,000 Cash Alternative\n40% SOLD"
        ),
        "html": '<h1>Audi RS6 Avant Performance</h1><img src="/wp-content/uploads/competitions/rs6.jpg">',
    }
    raffle = elite_competitions.parse_detail(snapshot, card, now)
    assert raffle.external_id == "audi-rs6"
    assert raffle.title == "Audi RS6 Avant Performance"
    assert raffle.total_tickets == 9999
    assert raffle.ticket_price == 99
    assert raffle.percent_sold == 40
    assert raffle.tickets_sold == 4000
    assert raffle.end_date == uk(2026, 2, 11, 21)
    assert raffle.image_url == "https://elitecompetitions.co.uk/wp-content/uploads/competitions/rs6.jpg"
    assert raffle.draw_type == "live_draw"


# --- Rev Comps -----------------------------------------------------------

REV_URL = "https://www.revcomps.com/product/bmw-m140i/"


def test_rev_comps_card(now):
    card = rev_comps.parse_card(link(
        REV_URL,
        link_text="24,999 TKTS\n£4.97\nWIN LIVE MON 9TH FEB\n87% SOLD\nBMW M140i Shadow Edition\nLIVE DRAW\n−\n+\nADD",
        image_url="https://www.revcomps.com/wp-content/uploads/m140i-300x300.jpg",
    ))
    assert card.title == "BMW M140i Shadow Edition"
    assert card.ticket_price == 497
    assert card.total_tickets == 24999
    assert card.percent_sold == 87
    assert card.draw_type == "live"
    assert card.image_url == "https://www.revcomps.com/wp-content/uploads/m140i.jpg"
    assert rev_comps.parse_card_end_date(card.end_date_text, now) == uk(2026, 2, 9, 23)


def test_rev_comps_pence_price_and_free_entries():
    assert rev_comps.parse_card_price("1,000 TKTS\n25P\nWIN £500") == 25
    free = link(REV_URL, link_text="1,000 TKTS\nFREE\nFree Site Credit Giveaway")
    assert rev_comps.parse_card(free) is None


def test_rev_comps_only_vehicles_get_details():
    scraper = rev_comps.RevCompsScraper()
    assert scraper.wants_detail(ListingCard(title="BMW M140i Shadow Edition", url=REV_URL))
    assert not scraper.wants_detail(ListingCard(title="iPhone 16 Pro Max", url=REV_URL))


def test_rev_comps_detail(now):
    card = ListingCard(title="BMW M140i", url=REV_URL, ticket_price=497, percent_sold=87, total_tickets=20000)
    snapshot = {
        "title": "BMW M140i Shadow Edition – Rev Comps",
        "body_text": "£30,000 CASH ALTERNATIVE\n£2,000 CASH INCLUDED\nLIVE DRAW",
        "html": (
            "<table><tr><th>End Date</th><td>9 February 2026</td></tr>"
            "<tr><th>Number of Tickets</th><td>24,999</td></tr></table>"
        ),
    }
    raffle = rev_comps.parse_detail(snapshot, card, now)
    assert raffle.title == "BMW M140i Shadow Edition"
    assert raffle.total_tickets == 24999
    assert raffle.cash_alternative == 3_000_000
    assert raffle.additional_cash == 200_000
    assert raffle.end_date == uk(2026, 2, 9, 23)
    assert raffle.draw_type == "live"


# --- Click Competitions --------------------------------------------------

CLICK_URL = "https://www.clickcompetitions.co.uk/competition/win-a-ford-ranger/"


def test_click_card():
    card = click_competitions.parse_card(link(
        CLICK_URL,
        link_text="£1.50 Per Entry\n62% Sold\n£30,000 Cash Alternative\nDraw Tomorrow\nAuto Draw",
        headings=["Win a Ford Ranger Wildtrak"],
    ))
    assert card.title == "Win a Ford Ranger Wildtrak"
    assert card.ticket_price == 150
    assert card.percent_sold == 62
    assert card.cash_alternative == 3_000_000
    assert card.end_date_text == "Draw Tomorrow"
    assert card.draw_type == "auto_draw"


def test_click_skips_buttons_and_credit():
    assert click_competitions.parse_card(link(CLICK_URL, link_text="Enter Now", headings=["X Prize"])) is None
    credit = link(CLICK_URL, link_text="£0.10 Per Entry", headings=["£50 Click Credit"])
    assert click_competitions.parse_card(credit) is None


def test_click_relative_draw_date(now):
    assert click_competitions.parse_relative_draw_date("Draw Tomorrow", now) == uk(2026, 1, 11)
    assert click_competitions.parse_relative_draw_date("Draw Sat 14th Feb", now) == uk(2026, 2, 14)
    assert click_competitions.parse_relative_draw_date("Sold Out", now) is None


def test_click_page_url():
    assert click_competitions.page_url(1) == click_competitions.LISTING_URL
    assert click_competitions.page_url(3).endswith("/competitions/page/3/")


def test_click_detail(now):
    card = ListingCard(title="Ranger", url=CLICK_URL, ticket_price=150, percent_sold=62, draw_type="live_draw")
    snapshot = {
        "title": "",
        "body_text": "Max Entries: 2,999\nDraw Date: 14/02/2026\nCash Alternative: £30,000\n70% Sold",
        "html": '<h1 class="product_title">Win a Ford Ranger Wildtrak</h1>',
    }
    raffle = click_competitions.parse_detail(snapshot, card, now)
    assert raffle.title == "Win a Ford Ranger Wildtrak"
    assert raffle.total_tickets == 2999
    assert raffle.end_date == uk(2026, 2, 14)
    assert raffle.percent_sold == 70
    assert raffle.tickets_sold == 2099
    assert raffle.cash_alternative == 3_000_000


# --- LLF Games -----------------------------------------------------------

LLF_URL = "https://llfgames.com/competition/win-a-rolex-submariner/"


def test_llf_card():
    card = llf_games.parse_card(link(
        LLF_URL,
        "Win a Rolex Submariner\n£0.05PER ENTRY\n42%\nCash alternative £8,000\nDraw Tomorrow",
        headings=["Win a Rolex Submariner"],
    ))
    assert card.ticket_price == 5
    assert card.percent_sold == 42
    assert card.cash_alternative == 800_000
    assert card.end_date_text == "Draw Tomorrow"
    assert card.draw_type == "live_draw"


def test_llf_sale_price_uses_current_price():
    card = llf_games.parse_card(link(
        LLF_URL,
        "Original price was: £0.19.£0.15Current price is: £0.15.\n10%",
        headings=["Win a Rolex Submariner"],
    ))
    assert card.ticket_price == 15
    assert card.percent_sold == 10


def test_llf_short_title_is_dropped():
    assert llf_games.parse_card(link(LLF_URL, "£0.05PER ENTRY", headings=["Win"])) is None


def test_llf_totals_and_prices():
    assert llf_games.parse_total_tickets("5,000 tickets available") == 5000
    assert llf_games.parse_total_tickets("Total tickets: 2,500") == 2500
    assert llf_games.parse_total_tickets("1,234 / 5,000") == 5000
    assert llf_games.parse_detail_price("£0.04 Per Entry") == 4
    assert llf_games.parse_detail_price("TICKETS JUST 5P") == 5


def test_llf_detail(now):
    card = ListingCard(title="Rolex", url=LLF_URL, ticket_price=None, percent_sold=42, draw_type="live_draw")
    snapshot = {
        "title": "",
        "body_text": (
            "5,000 tickets available\nLive draw Friday 30th January @ 10:00pm\n60% sold\n"
            "Cash Alternative: £8,000\nTICKETS JUST 5P"
        ),
        "html": "<h1>Win a Rolex Submariner Date</h1>",
    }
    raffle = llf_games.parse_detail(snapshot, card, now)
    assert raffle.title == "Win a Rolex Submariner Date"
    assert raffle.total_tickets == 5000
    assert raffle.end_date == uk(2026, 1, 30, 22)
    assert raffle.percent_sold == 60
    assert raffle.tickets_sold == 3000
    assert raffle.ticket_price == 5
    assert raffle.cash_alternative == 800_000


# --- Lucky Day Competitions ----------------------------------------------

LUCKY_URL = "https://www.luckydaycompetitions.com/product/win-a-tesla-model-3/"
LUCKY_TEXT = "Win a Tesla Model 3\n£0.99\nTickets remaining 98% 588/597\nEnds Tue 10th Feb"


def test_lucky_day_card(now):
    card = lucky_day_competitions.parse_card(link(LUCKY_URL, LUCKY_TEXT))
    assert card.title == "Win a Tesla Model 3"
    assert card.ticket_price == 99
    assert card.total_tickets == 597
    assert card.tickets_remaining == 588
    assert card.percent_sold == 2
    assert lucky_day_competitions.parse_end_date(card.end_date_text, now) == uk(2026, 2, 10)


def test_lucky_day_remaining_percent_only():
    card = lucky_day_competitions.parse_card(link(LUCKY_URL, "Win a Tesla Model 3\n£0.99\nTickets remaining 75%"))
    assert card.percent_sold == 25
    assert card.total_tickets is None


def test_lucky_day_drops_buttons_vouchers_and_priceless():
    parse = lucky_day_competitions.parse_card
    assert parse(link(LUCKY_URL, "Enter Now")) is None
    assert parse(link(LUCKY_URL, "£50 Gift Voucher\n£0.49")) is None
    assert parse(link(LUCKY_URL, "Win a Tesla Model 3\nEnds Tue 10th Feb")) is None


def test_lucky_day_end_date_needs_weekday(now):
    assert lucky_day_competitions.parse_end_date("Ends 10th Feb", now) is None


def test_lucky_day_detail(now):
    card = lucky_day_competitions.parse_card(link(LUCKY_URL, LUCKY_TEXT))
    snapshot = {
        "title": "",
        "body_text": "Cash Alternative: £40,000\nPrize Value: £45,000",
        "html": "<h1>Win a Tesla Model 3 Long Range</h1>",
    }
    raffle = lucky_day_competitions.parse_detail(snapshot, card, now)
    assert raffle.title == "Win a Tesla Model 3 Long Range"
    assert raffle.total_tickets == 597
    assert raffle.tickets_sold == 9
    assert raffle.cash_alternative == 4_000_000
    assert raffle.prize_value == 4_500_000
    assert raffle.end_date == uk(2026, 2, 10)
    assert raffle.draw_type == "live_draw"
