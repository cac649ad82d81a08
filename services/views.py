"""
List view state: search, type filter, sort and pagination.
Each table in the dashboard (all records, property, fixed deposit) owns one ListViewState.
"""

import logging
import math
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Iterable, List, Optional, Sequence, Set

from models import AssetRecord
from services.common import ALL

logger = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (5, 10, 20, 50, 100)

# Sortable columns shown in the tables
SORT_KEYS = (
    'date', 'asset_type', 'name', 'action', 'amount', 'unit_price', 'quantity',
    'fee', 'interest_rate', 'interest_dividend', 'maturity_date', 'status', 'currency',
)

ASC = 'asc'
DESC = 'desc'


@dataclass
class ListViewState:
    """
    View parameters for one table.

    Every setter that changes what is shown resets the page to 1.
    """
    page_size: int = 20
    search: str = ''
    type_filter: str = ALL
    sort_key: Optional[str] = None
    sort_direction: str = DESC
    page: int = 1
    search_remarks: bool = False
    selected_ids: Set[str] = field(default_factory=set)

    def set_search(self, text: str):
        if text != self.search:
            self.search = text
            self.page = 1

    def set_type_filter(self, type_filter: str):
        if type_filter != self.type_filter:
            self.type_filter = type_filter
            self.page = 1

    def set_sort(self, key: str, direction: Optional[str] = None):
        """Sort by key. Without a direction, clicking the same key flips it."""
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        if direction is None:
            if self.sort_key == key:
                direction = ASC if self.sort_direction == DESC else DESC
            else:
                direction = DESC
        if direction not in (ASC, DESC):
            raise ValueError(f"Unknown sort direction: {direction}")
        self.sort_key = key
        self.sort_direction = direction
        self.page = 1

    def set_page_size(self, page_size: int):
        if page_size <= 0:
            raise ValueError("Page size must be positive")
        if page_size != self.page_size:
            self.page_size = page_size
            self.page = 1

    def set_page(self, page: int):
        self.page = page

    def toggle_selected(self, record_id: str):
        if record_id in self.selected_ids:
            self.selected_ids.discard(record_id)
        else:
            self.selected_ids.add(record_id)

    def clear_selection(self):
        self.selected_ids.clear()

    @property
    def effective_sort(self):
        """Sort key and direction, defaulting to newest date first."""
        return (self.sort_key or 'date', self.sort_direction if self.sort_key else DESC)

    def cache_key(self) -> tuple:
        return (self.search, self.type_filter, self.effective_sort, self.search_remarks)


def matches_search(record: AssetRecord, text: str, include_remarks: bool = False) -> bool:
    """Case-insensitive substring match on name (and remarks when asked)."""
    if not text:
        return True
    needle = text.lower()
    if needle in (record.name or '').lower():
        return True
    return include_remarks and needle in (record.remarks or '').lower()


def filter_records(
    records: Iterable[AssetRecord],
    search: str = '',
    type_filter: str = ALL,
    include_remarks: bool = False
) -> List[AssetRecord]:
    """Apply the type filter and the free-text search."""
    return [
        r for r in records
        if (type_filter == ALL or r.asset_type == type_filter)
        and matches_search(r, search, include_remarks)
    ]


def _compare(a: Any, b: Any) -> int:
    try:
        if a < b:
            return -1
        if a > b:
            return 1
        return 0
    except TypeError:
        # Mixed types, e.g. a number against the "" placeholder
        return _compare(str(a), str(b))


def sort_records(records: Sequence[AssetRecord], key: str = 'date', direction: str = DESC) -> List[AssetRecord]:
    """
    Stable sort by a record attribute.

    Absent values compare as "" without touching the record itself.
    """
    sign = 1 if direction == ASC else -1

    def _cmp(a: AssetRecord, b: AssetRecord) -> int:
        a_val = getattr(a, key, None)
        b_val = getattr(b, key, None)
        a_val = '' if a_val is None else a_val
        b_val = '' if b_val is None else b_val
        return sign * _compare(a_val, b_val)

    return sorted(records, key=cmp_to_key(_cmp))


def page_count(total: int, page_size: int) -> int:
    """Number of pages for total items (never less than 1)."""
    if page_size <= 0:
        raise ValueError("Page size must be positive")
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    """Keep a page number inside [1, page_count]."""
    return min(max(1, page), page_count(total, page_size))


def paginate(items: Sequence[Any], page: int, page_size: int) -> List[Any]:
    """Slice one page out of an already filtered and sorted list."""
    page = clamp_page(page, len(items), page_size)
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


@dataclass
class PageResult:
    """One rendered page of a list view."""
    rows: List[AssetRecord]
    page: int
    page_count: int
    total: int
    page_size: int

    @property
    def first_index(self) -> int:
        """1-based index of the first row on the page (0 when empty)."""
        return 0 if self.total == 0 else (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        return min(self.page * self.page_size, self.total)


def apply_view(records: Iterable[AssetRecord], state: ListViewState) -> List[AssetRecord]:
    """Filter and sort records according to a view state."""
    filtered = filter_records(records, state.search, state.type_filter, state.search_remarks)
    key, direction = state.effective_sort
    return sort_records(filtered, key, direction)


def page_of(rows: Sequence[AssetRecord], state: ListViewState) -> PageResult:
    """Clamp the state's page to the data and return that page."""
    state.page = clamp_page(state.page, len(rows), state.page_size)
    return PageResult(
        rows=paginate(rows, state.page, state.page_size),
        page=state.page,
        page_count=page_count(len(rows), state.page_size),
        total=len(rows),
        page_size=state.page_size
    )
