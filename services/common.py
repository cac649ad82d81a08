"""
Common utilities and shared constants.
Numeric coercion, date handling, chart colors and action vocabularies.
"""

import logging
import math
import re
from datetime import date
from typing import Any, Optional

from models import AssetType

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "MYR"
ALL = "All"

# Fixed type -> color mapping for type-level allocation entries
TYPE_COLORS = {
    AssetType.STOCK.value: '#3b82f6',  # blue-500
    AssetType.FIXED_DEPOSIT.value: '#10b981',  # emerald-500
    AssetType.EPF.value: '#8b5cf6',  # violet-500
    AssetType.REIT.value: '#f59e0b',  # amber-500
    AssetType.PROPERTY.value: '#ef4444',  # red-500
    AssetType.OTHER.value: '#64748b',  # slate-500
}
FALLBACK_COLOR = '#cccccc'

# Cycled in encounter order for name-level allocation entries
NAME_PALETTE = [
    '#3b82f6', '#10b981', '#f59e0b', '#ef4444', '#8b5cf6',
    '#ec4899', '#06b6d4', '#84cc16', '#f97316', '#64748b',
]

PROPERTY_OUTFLOW_KEYWORDS = (
    'buy', 'pay', 'installment', 'downpayment', 'maintenance', 'expense', 'tax', 'renovation',
)
PROPERTY_INFLOW_KEYWORDS = ('rent', 'income', 'sold', 'dividend')

# Choices offered by the form for Property records
PROPERTY_ACTIONS = [
    'Buy', 'Pay', 'Installment', 'Downpayment', 'Maintenance', 'Expense', 'Tax',
    'Renovation', 'Rent', 'Income', 'Sold', 'Dividend',
]

# Suggestions for every other type; free text is still accepted
SUGGESTED_ACTIONS = ['Buy', 'Sell', 'Dividend', 'Deposit', 'Self contribute', 'Employee contribute']

# Sign applied to an amount in the running performance total
ACTION_MULTIPLIERS = {
    'sell': -1,
    'withdraw': -1,
}

_DATE_SEPARATORS = re.compile(r'[-/.]')


def to_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce user or file input to a finite float.

    Examples:
        >>> to_float("12.5")
        12.5
        >>> to_float("abc")
        0.0
        >>> to_float(None)
        0.0
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        text = str(value).strip()
        if not text:
            return default
        try:
            result = float(text)
        except ValueError:
            return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_optional_float(value: Any) -> Optional[float]:
    """Like to_float, but blank or invalid input stays absent."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    result = to_float(value, default=math.nan)
    return None if math.isnan(result) else result


def parse_iso_date(value: Any) -> Optional[date]:
    """Parse a YYYY-MM-DD string (or pass a date through). Invalid input yields None."""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug(f"Unparseable date: {text!r}")
        return None


def normalize_date(value: Optional[str]) -> str:
    """
    Normalize a date typed or exported by a spreadsheet to YYYY-MM-DD.

    Accepts -, / and . separators. A four-digit first part is read as
    year-month-day, otherwise day-month-year; two-digit years below 70
    become 20xx and the rest 19xx. Anything else is returned unchanged.

    Examples:
        >>> normalize_date("27-11-2025")
        '2025-11-27'
        >>> normalize_date("1/7/24")
        '2024-07-01'
    """
    if not value:
        return ''
    text = value.strip()
    parts = _DATE_SEPARATORS.split(text)
    if len(parts) != 3:
        return text

    if len(parts[0]) == 4:
        year, month, day = parts
    else:
        day, month, year = parts
        if len(year) == 2 and year.isdigit():
            year = f"20{year}" if int(year) < 70 else f"19{year}"

    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def format_number(value: float) -> str:
    """Render a number the way the stored remarks tags expect (5, 3.45)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_currency(value: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Format an amount for display, e.g. 'MYR 1,234.50'."""
    return f"{currency} {value:,.2f}"
