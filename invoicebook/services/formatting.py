from __future__ import annotations
import datetime as dt

# ---------- Formats (affichage uniquement : seul endroit où l'on arrondit) ----------

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
    "CHF": "CHF",
    "CNY": "¥",
    "INR": "₹",
}

_ZERO_DECIMALS = {"JPY"}


def format_currency(amount: float, currency: str = "USD") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    digits = 0 if currency in _ZERO_DECIMALS else 2
    sign = "-" if amount < 0 and round(abs(amount), digits) != 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{digits}f}"


def format_date(value: dt.date | str) -> str:
    if isinstance(value, str):
        try:
            value = dt.date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value.strftime("%B %d, %Y").replace(" 0", " ")
