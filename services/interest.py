"""
Fixed deposit interest.
Simple interest on an actual/365 day count, rounded to cents.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Union

from models import AssetRecord
from services.common import parse_iso_date
from services.remarks import resolve_rate

logger = logging.getLogger(__name__)

DateLike = Union[str, date, None]


@dataclass
class FixedDepositStats:
    """Principal and expected interest over active fixed deposits."""
    principal: float
    expected_interest: float
    count: int


def calculate_fd_interest(
    amount: Optional[float],
    rate: Optional[float],
    start: DateLike,
    end: DateLike
) -> float:
    """
    Calculate simple interest for a fixed deposit.

    Args:
        amount: Principal
        rate: Annual interest rate in percent (3.5 means 3.5%)
        start: Placement date
        end: Maturity date

    Returns:
        amount * rate * days / 36500 rounded to 2 places, or 0 when any input
        is missing/zero or the maturity is not after the placement date

    Examples:
        >>> calculate_fd_interest(10000, 3.5, "2024-01-01", "2024-07-01")
        174.52
    """
    if not amount or not rate or not start or not end:
        return 0.0

    start_date = parse_iso_date(start)
    end_date = parse_iso_date(end)
    if start_date is None or end_date is None:
        return 0.0

    # Calendar dates, so the difference is already a whole number of days
    day_count = math.ceil((end_date - start_date).days)
    if day_count <= 0:
        return 0.0

    return round(amount * rate * day_count / 36500, 2)


def refresh_fd_interest(record: AssetRecord) -> AssetRecord:
    """
    Recompute interest_dividend for a fixed deposit in place.

    The stored value is never trusted: when rate, amount, date and maturity
    date are all known the figure is derived again from them. Records of other
    types are returned untouched.
    """
    if not record.is_fixed_deposit:
        return record

    rate = resolve_rate(record.interest_rate, record.remarks)
    record.interest_rate = rate or None
    if rate > 0 and record.amount > 0 and record.date and record.maturity_date:
        record.interest_dividend = calculate_fd_interest(
            record.amount, rate, record.date, record.maturity_date
        )
    return record


def fd_stats(records: Iterable[AssetRecord]) -> FixedDepositStats:
    """
    Sum principal and recomputed interest over active fixed deposits.

    Args:
        records: Records of a single currency partition
    """
    principal = 0.0
    interest = 0.0
    count = 0
    for record in records:
        if not (record.is_fixed_deposit and record.is_active):
            continue
        principal += record.amount or 0.0
        interest += calculate_fd_interest(
            record.amount,
            resolve_rate(record.interest_rate, record.remarks),
            record.date,
            record.maturity_date
        )
        count += 1

    return FixedDepositStats(
        principal=round(principal, 2),
        expected_interest=round(interest, 2),
        count=count
    )
