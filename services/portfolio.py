"""
Portfolio service for calculating totals, allocation and cash flow.
Every figure is computed inside a single currency partition; amounts in
different currencies are never added together.
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from models import AssetRecord, AssetType
from services.common import (
    ALL,
    ACTION_MULTIPLIERS,
    DEFAULT_CURRENCY,
    FALLBACK_COLOR,
    NAME_PALETTE,
    PROPERTY_INFLOW_KEYWORDS,
    PROPERTY_OUTFLOW_KEYWORDS,
    TYPE_COLORS,
    parse_iso_date,
)
from services.interest import FixedDepositStats, fd_stats
from services.views import ListViewState, PageResult, apply_view, page_of

logger = logging.getLogger(__name__)

PERFORMANCE_RANGES = ('1W', '1M', '1Y')


@dataclass
class TotalValue:
    """Sum of active amounts in one currency."""
    value: float
    currency: str


@dataclass
class TopAsset:
    """Largest group of active holdings (a type, or a name within a type)."""
    name: str = "N/A"
    value: float = 0.0


@dataclass
class AllocationEntry:
    """One slice of the allocation ring chart."""
    name: str
    value: float
    color: str


@dataclass
class PropertyCashFlow:
    """Money put into and taken out of property holdings."""
    total_invested: float
    total_returned: float
    net_cash_flow: float
    has_properties: bool
    records: List[AssetRecord] = field(default_factory=list)


@dataclass
class SeriesPoint:
    date: str
    value: float


def record_currency(record: AssetRecord) -> str:
    """Currency of a record, MYR when absent."""
    return record.currency or DEFAULT_CURRENCY


def partition_by_currency(records: Iterable[AssetRecord], currency: str) -> List[AssetRecord]:
    """
    Select the records of one currency.

    Args:
        records: Full record list
        currency: Selected currency code

    Returns:
        Records whose currency (MYR when absent) equals the selection
    """
    return [r for r in records if record_currency(r) == currency]


def available_currencies(records: Iterable[AssetRecord], preferred: str = DEFAULT_CURRENCY) -> List[str]:
    """Distinct currencies present, preferred first, then alphabetical."""
    found = {record_currency(r) for r in records}
    found.discard(preferred)
    return [preferred] + sorted(found)


def _matches_type(record: AssetRecord, type_filter: str) -> bool:
    return type_filter == ALL or record.asset_type == type_filter


def total_value(records: Iterable[AssetRecord], currency: str, type_filter: str = ALL) -> TotalValue:
    """Sum amounts of active records matching the type filter within a currency."""
    total = sum(
        r.amount or 0.0
        for r in partition_by_currency(records, currency)
        if r.is_active and _matches_type(r, type_filter)
    )
    return TotalValue(value=round(total, 2), currency=currency)


def _group_active(records: Iterable[AssetRecord], type_filter: str) -> Dict[str, float]:
    """Sum active amounts per type (filter All) or per name (single type), in encounter order."""
    groups: Dict[str, float] = {}
    for record in records:
        if not (record.is_active and _matches_type(record, type_filter)):
            continue
        key = record.asset_type if type_filter == ALL else record.name
        groups[key] = groups.get(key, 0.0) + (record.amount or 0.0)
    return groups


def top_asset(records: Iterable[AssetRecord], type_filter: str = ALL) -> TopAsset:
    """
    Find the group with the largest active sum.

    Groups are types when the filter is All, otherwise asset names within the
    selected type. Ties keep the first group encountered.

    Args:
        records: Records of a single currency partition
        type_filter: All or an asset type label
    """
    top = TopAsset()
    for key, value in _group_active(records, type_filter).items():
        if value > top.value:
            top = TopAsset(name=key, value=round(value, 2))
    return top


def allocation_breakdown(records: Iterable[AssetRecord], type_filter: str = ALL) -> List[AllocationEntry]:
    """
    Build ring chart entries for the active holdings.

    Type entries take the fixed type color; name entries cycle the palette in
    the order names are first encountered. Non-positive groups are dropped and
    the result is sorted by value, largest first.
    """
    entries = []
    for index, (key, value) in enumerate(_group_active(records, type_filter).items()):
        if type_filter == ALL:
            color = TYPE_COLORS.get(key, FALLBACK_COLOR)
        else:
            color = NAME_PALETTE[index % len(NAME_PALETTE)]
        if value > 0:
            entries.append(AllocationEntry(name=key, value=round(value, 2), color=color))

    return sorted(entries, key=lambda e: e.value, reverse=True)


def record_count(records: Sequence[AssetRecord]) -> int:
    """Number of records in the partition regardless of status."""
    return len(records)


def classify_property_action(action: Optional[str]):
    """
    Classify a property action by keyword.

    Returns:
        (is_outflow, is_inflow); both can be True for an action such as
        "Pay rent" that contains keywords from each list
    """
    text = (action or '').lower()
    is_outflow = any(k in text for k in PROPERTY_OUTFLOW_KEYWORDS)
    is_inflow = any(k in text for k in PROPERTY_INFLOW_KEYWORDS)
    return is_outflow, is_inflow


def property_records(records: Iterable[AssetRecord], selected_property: str = ALL) -> List[AssetRecord]:
    """Property records, optionally narrowed to one property name."""
    return [
        r for r in records
        if r.asset_type == AssetType.PROPERTY
        and (selected_property == ALL or r.name == selected_property)
    ]


def property_names(records: Iterable[AssetRecord]) -> List[str]:
    """Distinct property names for the selector."""
    return sorted({r.name for r in records if r.asset_type == AssetType.PROPERTY})


def property_cash_flow(records: Iterable[AssetRecord], selected_property: str = ALL) -> PropertyCashFlow:
    """
    Total what went into and came out of property.

    Outflow and inflow are checked independently: an action matching both
    keyword lists is counted on both sides.

    Args:
        records: Records of a single currency partition
        selected_property: All or one property name
    """
    selected = property_records(records, selected_property)
    invested = 0.0
    returned = 0.0
    for record in selected:
        is_outflow, is_inflow = classify_property_action(record.action)
        if is_outflow:
            invested += record.amount or 0.0
        if is_inflow:
            returned += record.amount or 0.0

    return PropertyCashFlow(
        total_invested=round(invested, 2),
        total_returned=round(returned, 2),
        net_cash_flow=round(returned - invested, 2),
        has_properties=len(selected) > 0,
        records=selected
    )


def net_worth_series(records: Iterable[AssetRecord]) -> List[SeriesPoint]:
    """
    Cumulative active total at each distinct record date.

    Args:
        records: Records of a single currency partition
    """
    records = list(records)
    dates = sorted({r.date for r in records if r.date})
    points = []
    for day in dates:
        total = sum(r.amount or 0.0 for r in records if r.is_active and r.date <= day)
        points.append(SeriesPoint(date=day, value=round(total, 2)))
    return points


def _range_start(time_range: str, today: date) -> date:
    if time_range == '1W':
        return today - timedelta(days=7)
    if time_range == '1M':
        year, month = (today.year - 1, 12) if today.month == 1 else (today.year, today.month - 1)
        return date(year, month, min(today.day, calendar.monthrange(year, month)[1]))
    if time_range == '1Y':
        try:
            return today.replace(year=today.year - 1)
        except ValueError:
            # 29 February
            return today.replace(year=today.year - 1, day=28)
    raise ValueError(f"Unknown time range: {time_range}")


def performance_series(
    records: Iterable[AssetRecord],
    time_range: str = '1M',
    type_filter: str = ALL,
    today: Optional[date] = None
) -> List[SeriesPoint]:
    """
    Daily running total of active holdings over a window ending today.

    Sells and withdrawals subtract; everything else adds. The first point
    already includes every record dated before the window.
    """
    today = today or date.today()
    start = _range_start(time_range, today)

    relevant = [r for r in records if r.is_active and _matches_type(r, type_filter)]

    def _signed(record: AssetRecord) -> float:
        multiplier = ACTION_MULTIPLIERS.get((record.action or '').lower(), 1)
        return (record.amount or 0.0) * multiplier

    running = 0.0
    by_day: Dict[date, float] = {}
    for record in relevant:
        day = parse_iso_date(record.date)
        if day is None:
            continue
        if day < start:
            running += _signed(record)
        elif day <= today:
            by_day[day] = by_day.get(day, 0.0) + _signed(record)

    points = []
    day = start
    while day <= today:
        running += by_day.get(day, 0.0)
        points.append(SeriesPoint(date=day.isoformat(), value=round(running, 2)))
        day += timedelta(days=1)
    return points


class DashboardEngine:
    """
    Memoized derivations over the in-memory record list.

    Each derived value is cached under the tuple of its inputs and recomputed
    only when one of them changes. Replacing or mutating the record list must
    go through set_records/touch so the version counter moves.
    """

    def __init__(self, records: Optional[List[AssetRecord]] = None, currency: str = DEFAULT_CURRENCY):
        self.records: List[AssetRecord] = list(records or [])
        self.version = 0
        self.currency = currency
        self.type_filter = ALL
        self.selected_property = ALL
        self.records_view = ListViewState(page_size=20, search_remarks=True)
        self.property_view = ListViewState(page_size=5)
        self.fd_view = ListViewState(page_size=10)
        self._cache: Dict[str, tuple] = {}

    # ---- inputs ----

    def set_records(self, records: List[AssetRecord]):
        self.records = list(records)
        self.touch()

    def touch(self):
        """Signal that the record list changed in place."""
        self.version += 1

    def set_currency(self, currency: str):
        self.currency = currency

    def set_type_filter(self, type_filter: str):
        # The dashboard filter also drives the records table
        self.type_filter = type_filter
        self.records_view.set_type_filter(type_filter)

    def set_selected_property(self, name: str):
        if name != self.selected_property:
            self.selected_property = name
            self.property_view.set_page(1)

    # ---- memoization ----

    def _memo(self, name: str, key: Hashable, compute: Callable):
        cached = self._cache.get(name)
        if cached is not None and cached[0] == key:
            return cached[1]
        value = compute()
        self._cache[name] = (key, value)
        return value

    # ---- derived values ----

    @property
    def partition(self) -> List[AssetRecord]:
        return self._memo(
            'partition', (self.version, self.currency),
            lambda: partition_by_currency(self.records, self.currency)
        )

    @property
    def total_value(self) -> TotalValue:
        return self._memo(
            'total_value', (self.version, self.currency, self.type_filter),
            lambda: total_value(self.partition, self.currency, self.type_filter)
        )

    @property
    def top_asset(self) -> TopAsset:
        return self._memo(
            'top_asset', (self.version, self.currency, self.type_filter),
            lambda: top_asset(self.partition, self.type_filter)
        )

    @property
    def allocation(self) -> List[AllocationEntry]:
        return self._memo(
            'allocation', (self.version, self.currency, self.type_filter),
            lambda: allocation_breakdown(self.partition, self.type_filter)
        )

    @property
    def record_count(self) -> int:
        return record_count(self.partition)

    @property
    def fd_stats(self) -> FixedDepositStats:
        return self._memo(
            'fd_stats', (self.version, self.currency),
            lambda: fd_stats(self.partition)
        )

    @property
    def property_cash_flow(self) -> PropertyCashFlow:
        return self._memo(
            'property_cash_flow', (self.version, self.currency, self.selected_property),
            lambda: property_cash_flow(self.partition, self.selected_property)
        )

    @property
    def property_names(self) -> List[str]:
        return self._memo(
            'property_names', (self.version, self.currency),
            lambda: property_names(self.partition)
        )

    @property
    def net_worth_series(self) -> List[SeriesPoint]:
        return self._memo(
            'net_worth_series', (self.version, self.currency),
            lambda: net_worth_series(self.partition)
        )

    def performance_series(self, time_range: str = '1M', today: Optional[date] = None) -> List[SeriesPoint]:
        today = today or date.today()
        return self._memo(
            'performance_series', (self.version, self.currency, self.type_filter, time_range, today),
            lambda: performance_series(self.partition, time_range, self.type_filter, today)
        )

    # ---- list views ----

    @property
    def filtered_records(self) -> List[AssetRecord]:
        return self._memo(
            'filtered_records', (self.version, self.currency, self.records_view.cache_key()),
            lambda: apply_view(self.partition, self.records_view)
        )

    @property
    def filtered_property_records(self) -> List[AssetRecord]:
        return self._memo(
            'filtered_property_records',
            (self.version, self.currency, self.selected_property, self.property_view.cache_key()),
            lambda: apply_view(self.property_cash_flow.records, self.property_view)
        )

    @property
    def filtered_fd_records(self) -> List[AssetRecord]:
        return self._memo(
            'filtered_fd_records', (self.version, self.currency, self.fd_view.cache_key()),
            lambda: apply_view(
                [r for r in self.partition if r.is_fixed_deposit], self.fd_view
            )
        )

    def records_page(self) -> PageResult:
        return page_of(self.filtered_records, self.records_view)

    def property_page(self) -> PageResult:
        return page_of(self.filtered_property_records, self.property_view)

    def fd_page(self) -> PageResult:
        return page_of(self.filtered_fd_records, self.fd_view)
