"""
Remarks tag codec.
Interest rate and interest/dividend values may travel inside the free-text
remarks as [Rate: 3.45%] and [Int: 100] so that stores without dedicated
columns (and exported CSV files) keep them.
"""

import re
from typing import Optional

from models import AssetType
from services.common import format_number

RATE_TAG = re.compile(r'\[Rate:\s*([\d.]+)%\]')
INT_TAG = re.compile(r'\[Int:\s*([\d.]+)\]')


def _first_number(pattern: re.Pattern, remarks: Optional[str]) -> float:
    if not remarks:
        return 0.0
    match = pattern.search(remarks)
    if not match:
        return 0.0
    try:
        return float(match.group(1))
    except ValueError:
        # e.g. "[Rate: 1.2.3%]"
        return 0.0


def parse_rate(remarks: Optional[str]) -> float:
    """
    Read the interest rate tag from remarks.

    Examples:
        >>> parse_rate("Tenure 6m [Rate: 3.45%]")
        3.45
        >>> parse_rate("no tag")
        0.0
    """
    return _first_number(RATE_TAG, remarks)


def parse_interest(remarks: Optional[str]) -> float:
    """Read the interest/dividend tag from remarks (0 when absent)."""
    return _first_number(INT_TAG, remarks)


def strip_tags(remarks: Optional[str]) -> str:
    """Remove every rate and interest tag and trim the result."""
    text = remarks or ''
    text = RATE_TAG.sub('', text)
    text = INT_TAG.sub('', text)
    return text.strip()


def encode_remarks(
    remarks: Optional[str],
    asset_type: str,
    interest_rate: Optional[float],
    interest_dividend: Optional[float]
) -> str:
    """
    Rebuild remarks with freshly generated tags.

    The rate tag is written for every type with a positive rate. The interest
    tag is skipped for fixed deposits, whose interest is always recomputed.
    """
    text = strip_tags(remarks)
    if interest_rate and interest_rate > 0:
        text += f" [Rate: {format_number(interest_rate)}%]"
    if asset_type != AssetType.FIXED_DEPOSIT and interest_dividend and interest_dividend > 0:
        text += f" [Int: {format_number(interest_dividend)}]"
    return text.strip()


def resolve_rate(column_value: Optional[float], remarks: Optional[str]) -> float:
    """Dedicated column first, remarks tag as fallback."""
    return column_value or parse_rate(remarks)


def resolve_interest(column_value: Optional[float], remarks: Optional[str]) -> float:
    """Dedicated column first, remarks tag as fallback."""
    return column_value or parse_interest(remarks)
