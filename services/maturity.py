"""
Automatic maturity of fixed deposits.
The only automatic status change: Active -> Mature once the maturity date is reached.
"""

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional

from models import AssetRecord, AssetStatus
from services.common import parse_iso_date

logger = logging.getLogger(__name__)


def is_matured(record: AssetRecord, today: date) -> bool:
    """True for an active fixed deposit whose maturity date is today or earlier."""
    if not (record.is_fixed_deposit and record.is_active):
        return False
    maturity = parse_iso_date(record.maturity_date)
    return maturity is not None and maturity <= today


def find_matured(records: Iterable[AssetRecord], today: Optional[date] = None) -> List[AssetRecord]:
    """Return the records that should transition to Mature."""
    today = today or date.today()
    return [r for r in records if is_matured(r, today)]


def apply_maturity(
    records: Iterable[AssetRecord],
    today: Optional[date] = None,
    persist: Optional[Callable[[AssetRecord], None]] = None
) -> List[AssetRecord]:
    """
    Mark matured fixed deposits as Mature in place.

    Running the scan again on the same records changes nothing, since
    Mature records are no longer candidates.

    Args:
        records: Records to scan
        today: Calendar date to compare against (defaults to today)
        persist: Optional callback invoked for each transitioned record

    Returns:
        The records that changed status
    """
    matured = find_matured(records, today)
    for record in matured:
        record.status = AssetStatus.MATURE.value
        logger.info(f"Fixed deposit {record.name} ({record.id}) matured on {record.maturity_date}")
        if persist is not None:
            persist(record)
    return matured
