"""Formatting helpers for rendering amounts."""

from splitter.formatting.currency import (
    CURRENCY_SYMBOLS,
    format_amount,
    format_mixed_total,
    get_currency_symbol,
)

__all__ = [
    "CURRENCY_SYMBOLS",
    "format_amount",
    "format_mixed_total",
    "get_currency_symbol",
]
