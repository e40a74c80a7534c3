"""Currency symbols and amount formatting."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CURRENCY_SYMBOLS: dict[str, str] = {
    "PLN": "zł",
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "CHF": "Fr.",
}


def get_currency_symbol(currency: str) -> str:
    """Symbol for an ISO code, or the code itself when unknown."""
    return CURRENCY_SYMBOLS.get(currency, currency)


def format_amount(amount: Union[Decimal, float, int], currency: str) -> str:
    """Format as `<amount with 2 decimals> <symbol>`, e.g. `50.00 zł`."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{value:.2f} {get_currency_symbol(currency)}"


def format_mixed_total(amount: Union[Decimal, float, int]) -> str:
    """Total over expenses in several currencies, which carries no symbol."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{value:.2f} (mixed currencies)"
