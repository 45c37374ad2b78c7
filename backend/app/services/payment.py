"""
Swish payment link for the registration fee.
"""

from urllib.parse import quote

from app.core.config import Settings, get_settings

SWISH_BASE_URL = "https://app.swish.nu/1/p/sw/"


def build_swish_url(drinks_alcohol: bool = False, settings: Settings | None = None) -> str:
    """Build the payment deep link; the alcohol surcharge is added on request."""
    settings = settings or get_settings()
    amount = settings.SWISH_AMOUNT
    if drinks_alcohol:
        amount += settings.SWISH_ALCOHOL_COST

    params = [
        ("sw", settings.SWISH_PHONE_NUMBER),
        ("amt", str(amount)),
        ("cur", settings.SWISH_CURRENCY),
        ("msg", settings.SWISH_MESSAGE),
        ("edit", "amt" if settings.SWISH_ALLOW_EDIT_AMOUNT else ""),
        ("src", settings.SWISH_SOURCE),
    ]
    query = "&".join(f"{key}={quote(value, safe='')}" for key, value in params)
    return f"{SWISH_BASE_URL}?{query}"
