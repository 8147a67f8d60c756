"""Prize type and vehicle category classification from competition titles."""
from typing import Optional

from src.parse.models import CarCategory, PrizeType

# Evaluated in this order; the first category with a matching keyword wins.
CATEGORY_RULES: dict[CarCategory, list[str]] = {
    CarCategory.SUPERCAR: [
        "lamborghini", "ferrari", "mclaren", "bugatti", "pagani", "koenigsegg", "aston martin",
    ],
    CarCategory.PERFORMANCE: [
        " m2 ", " m3 ", " m4 ", " m5 ", " m8 ", "m135", "m140i", "m240i", "m340",
        "rs3", "rs4", "rs5", "rs6", "rs7", "amg", "type r", "st-line",
        "vxr", "gti", "golf r", "focus rs", "civic type",
        "sti", "wrx", "gt4rs", "gt3 rs", "cayman", " 911 ", "supra", " gtr",
        "gt-r", "nismo", "gr yaris", "a45", "c63", "e63", "s63",
        "jimny",
    ],
    CarCategory.LUXURY: [
        "rolls royce", "bentley", "maybach", "range rover",
        "g wagon", "g63", "g-class", "defender",
    ],
    CarCategory.ELECTRIC: [
        "tesla", "model 3", "model y", "model s", "model x",
        "taycan", "e-tron", "id.", "ioniq", "ev6", "enyaq",
        "polestar",
    ],
    CarCategory.SUV: [
        "urus", "cayenne", "macan", "x3", "x5", "x7",
        "q5", "q7", "q8", "glc", "gle", "gls",
        "tiguan", "tucson", "sportage", "xc60", "xc90",
    ],
    CarCategory.CLASSIC: [
        "escort rs", "cosworth", "mk1", "mk2", "e30", "e36",
        "mini cooper classic", "nova gsi", "ek9", "skyline r32",
        "skyline r33", "restored", "106 rallye",
    ],
    CarCategory.SEDAN: [
        "3 series", "5 series", "a4 ", "a6 ", "c-class", "e-class",
        "s-class",
    ],
    CarCategory.VAN: [
        "transit", "sprinter", "vivaro", "transporter", "crafter", "camper", "ranger",
    ],
}

CAR_KEYWORDS = [
    "bmw", "audi", "mercedes", "ferrari", "lamborghini", "porsche", "mclaren",
    "volkswagen", "ford focus", "ford fiesta", "ford mustang", "ford escort",
    "ford transit", "ford ranger",
    "honda civic", "honda type", "toyota supra", "toyota gr", "nissan gtr", "nissan gt-r", "nissan skyline",
    "range rover", "land rover", "bentley", "rolls royce", "tesla",
    "volvo xc", "volvo v", "volvo s", "vauxhall", "mini cooper",
    "jaguar", "aston martin", "defender", "motorhome", "campervan",
    "peugeot", "seat ", "skoda", "fiat ", "alfa romeo", "maserati",
    "suzuki jimny", "suzuki swift",
    "transit connect", "transporter", "camper",
    "car giveaway", "free car",
]

MOTORCYCLE_KEYWORDS = [
    "ducati", "kawasaki ninja", "yamaha r1", "yamaha mt",
    "motorcycle", "motorbike", "panigale",
    "honda cb", "triumph street", "triumph speed",
    "fireblade", "hayabusa",
    "sur ron", "surron",
]

HOUSE_KEYWORDS = [
    "house", "home package", "property", "apartment", "flat",
    "herefordshire", "worcestershire", "cottage",
]

WATCH_KEYWORDS = [
    "rolex", "tag heuer", "omega", "breitling", "cartier",
    "watch", "patek", "audemars", "tissot", "swatch",
]

TECH_KEYWORDS = [
    "iphone", "macbook", "ipad", "samsung", "playstation", "ps5",
    "xbox", "nintendo", "switch", "gaming", "apple", "pixel",
    "laptop", "tv ", "smart tv", "steam deck", "alienware",
    "dyson", "imac",
]

HOLIDAY_KEYWORDS = [
    "holiday", "tui voucher", "travel", "getaway", "spa break",
    "tickets to",
]

CASH_KEYWORDS = [
    "tax free cash", "win £",
]

# Vehicle keywords in these titles refer to toys, models or fashion goods.
NOT_REAL_VEHICLE_PATTERNS = [
    "ride on", "kids", "toy", "rc ", "r/c", "1:8", "1:10", "1:16", "1:18",
    "scale", "remote control", "rtr", "hpi ", "licensed ride",
    "mini bag", "mini bundle", "mini pack",
    "gucci", "dior", "louis vuitton", "prada",
]

# Game-style competitions; never cash even when the title names an amount.
INSTANT_WIN_PATTERNS = [
    "instant win", "guaranteed wins", "prize pot", "prize every time",
    "click & win", "click and win", "wheel of fortune", "wheel of wealth",
    "arcade", "vault",
    "cash spin", "cash scratch", "fortune builder",
    "fishing finds", "coin drop", "drop zone",
    "temple of prosperity", "pirate quest",
]

# Cash is the most generic rule set and must stay last.
NON_VEHICLE_RULES: list[tuple[PrizeType, list[str]]] = [
    (PrizeType.HOUSE, HOUSE_KEYWORDS),
    (PrizeType.WATCH, WATCH_KEYWORDS),
    (PrizeType.TECH, TECH_KEYWORDS),
    (PrizeType.HOLIDAY, HOLIDAY_KEYWORDS),
    (PrizeType.CASH, CASH_KEYWORDS),
]


def _contains_any(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def is_instant_win(title: str) -> bool:
    """True for instant-win and skill-game titles."""
    return _contains_any((title or "").lower(), INSTANT_WIN_PATTERNS)


def is_not_real_vehicle(title: str) -> bool:
    """True when vehicle words in the title describe a toy, model or accessory."""
    return _contains_any((title or "").lower(), NOT_REAL_VEHICLE_PATTERNS)


def classify_prize_type(title: str) -> PrizeType:
    """
    Determine the prize type from a competition title.

    Order: instant-win games, car, motorcycle, house, watch, tech, holiday,
    cash. Cars are checked before cash because most car prizes also quote a
    cash alternative.
    """
    lower_title = (title or "").lower()

    if _contains_any(lower_title, INSTANT_WIN_PATTERNS):
        return PrizeType.OTHER

    not_real_vehicle = _contains_any(lower_title, NOT_REAL_VEHICLE_PATTERNS)
    if not not_real_vehicle:
        if _contains_any(lower_title, CAR_KEYWORDS):
            return PrizeType.CAR
        if _contains_any(lower_title, MOTORCYCLE_KEYWORDS):
            return PrizeType.MOTORCYCLE

    for prize_type, keywords in NON_VEHICLE_RULES:
        if _contains_any(lower_title, keywords):
            return prize_type

    return PrizeType.OTHER


def classify_car_category(
    title: str,
    make: Optional[str] = None,
    model: Optional[str] = None,
) -> CarCategory:
    """
    Classify a vehicle into a category from title, make and model.

    The search text is padded with spaces so word-bounded keywords such as
    " m3 " only match whole tokens.
    """
    search_text = " " + " ".join(part for part in (title, make, model) if part).lower() + " "

    for category, keywords in CATEGORY_RULES.items():
        if _contains_any(search_text, keywords):
            return category

    return CarCategory.OTHER


def vehicle_category_for(prize_type: PrizeType, title: str, make: Optional[str] = None,
                         model: Optional[str] = None) -> Optional[CarCategory]:
    """Car category for vehicle prizes, None for everything else."""
    if prize_type in (PrizeType.CAR, PrizeType.MOTORCYCLE):
        return classify_car_category(title, make, model)
    return None
