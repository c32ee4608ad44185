"""
Money helpers for SplitLedger

All amounts are handled as Decimal. Floats only appear at the JSON boundary
and are converted through their string form so that 0.1 stays 0.1.

DESIGN DECISION: Every currency has a fixed number of minor units (ISO 4217
exponent). The smallest unit of the group's currency is the epsilon used by
share reconciliation and settlement. Rounding is always ROUND_HALF_UP.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ROUNDING = ROUND_HALF_UP

# Tolerance for percentage totals and custom split totals at write time.
SPLIT_SUM_TOLERANCE = Decimal("0.01")

# Largest accepted expense amount. Keeps every quantize() within the
# 28-digit default decimal context, even for three-decimal currencies.
MAX_AMOUNT = Decimal("1000000000000")

DEFAULT_MINOR_UNITS = 2

# ISO 4217 exponents that differ from the default of 2.
CURRENCY_MINOR_UNITS: dict[str, int] = {
    "BIF": 0,
    "CLP": 0,
    "DJF": 0,
    "GNF": 0,
    "ISK": 0,
    "JPY": 0,
    "KMF": 0,
    "KRW": 0,
    "PYG": 0,
    "RWF": 0,
    "UGX": 0,
    "VND": 0,
    "VUV": 0,
    "XAF": 0,
    "XOF": 0,
    "XPF": 0,
    "BHD": 3,
    "IQD": 3,
    "JOD": 3,
    "KWD": 3,
    "LYD": 3,
    "OMR": 3,
    "TND": 3,
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "NPR": "Rs.",
    "AUD": "A$",
    "CAD": "C$",
    "CHF": "Fr",
    "SEK": "kr",
    "NZD": "NZ$",
    "SGD": "S$",
    "HKD": "HK$",
    "NOK": "kr",
    "KRW": "₩",
    "TRY": "₺",
    "RUB": "₽",
    "BRL": "R$",
    "ZAR": "R",
    "MXN": "$",
    "AED": "د.إ",
    "SAR": "﷼",
    "THB": "฿",
    "IDR": "Rp",
    "MYR": "RM",
    "PHP": "₱",
    "VND": "₫",
    "PKR": "₨",
    "BDT": "৳",
    "LKR": "Rs",
    "MMK": "K",
}


def minor_units(currency: str) -> int:
    """Number of decimal places used by the currency."""
    return CURRENCY_MINOR_UNITS.get(currency.upper(), DEFAULT_MINOR_UNITS)


def quantum(currency: str) -> Decimal:
    """Smallest representable unit of the currency, e.g. Decimal('0.01')."""
    return Decimal(1).scaleb(-minor_units(currency))


def quantize(amount: Decimal, currency: str) -> Decimal:
    """Round an amount to the currency's minor unit."""
    return amount.quantize(quantum(currency), rounding=ROUNDING)


def has_valid_precision(amount: Decimal, currency: str) -> bool:
    """True when the amount has no digits below the currency's minor unit."""
    try:
        return amount == amount.quantize(quantum(currency), rounding=ROUNDING)
    except InvalidOperation:
        return False


def to_decimal(value: Any) -> Decimal:
    """
    Convert user or JSON input to Decimal.

    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError("Boolean is not a valid amount")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a valid number: {value!r}")
    else:
        raise ValueError(f"Not a valid number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def to_json_number(value: Decimal) -> int | float:
    """Render a Decimal for JSON: integers stay integers."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency)


def format_amount(amount: Decimal, currency: str) -> str:
    """Format an amount with the currency symbol, e.g. '$12.50'."""
    places = minor_units(currency)
    return f"{currency_symbol(currency)}{quantize(amount, currency):,.{places}f}"
