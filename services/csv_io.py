"""
CSV export and import for the asset ledger.
Export writes a fixed column order; import turns an uploaded file into
candidate records and flags likely duplicates before anything is stored.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Union

from models import AssetRecord, AssetStatus, AssetType
from services.common import (
    DEFAULT_CURRENCY,
    normalize_date,
    to_float,
    to_optional_float,
)
from services.errors import CsvImportError
from services.interest import refresh_fd_interest
from services.portfolio import record_currency
from services.remarks import resolve_interest, resolve_rate

logger = logging.getLogger(__name__)

EXPORT_HEADERS = [
    'Date',
    'Type',
    'Name',
    'Action',
    'Unit Price',
    'Quantity',
    'Total Amount',
    'Fee',
    'Interest/Dividend',
    'Maturity Date',
    'Status',
    'Currency',
    'Remarks',
]

REQUIRED_HEADERS = ['Date', 'Type', 'Name', 'Action', 'Status']
# Older exports used "Amount"
AMOUNT_HEADERS = ('Total Amount', 'Amount')

_TYPES = {t.value.lower(): t.value for t in AssetType}
_STATUSES = {s.value.lower(): s.value for s in AssetStatus}


@dataclass
class ImportCandidate:
    """A parsed row and whether it looks like a record we already have."""
    record: AssetRecord
    is_duplicate: bool = False


@dataclass
class ImportSummary:
    """Overview shown before the user confirms an import."""
    count: int
    type_count: int
    duplicate_count: int
    totals_by_currency: Dict[str, float] = field(default_factory=dict)
    preview: List[AssetRecord] = field(default_factory=list)


# ==================== Export ====================

def _number(value: float) -> Union[int, float]:
    """Whole values are written without a trailing .0 (5, 3.45)."""
    value = float(value)
    return int(value) if value.is_integer() else value


def _optional_number(value: Optional[float]) -> Union[int, float, str]:
    return _number(value) if value else ''


def export_csv(records: Iterable[AssetRecord]) -> str:
    """
    Serialize records to CSV text.

    Every text field is double-quoted (embedded quotes doubled) and numbers
    are written bare; optional numbers are written as empty fields when
    absent or zero.
    """
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator='\n').writerow(EXPORT_HEADERS)
    writer = csv.DictWriter(
        buffer, fieldnames=EXPORT_HEADERS, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n'
    )
    for r in records:
        writer.writerow({
            'Date': r.date or '',
            'Type': r.asset_type,
            'Name': r.name or '',
            'Action': r.action or '',
            'Unit Price': _optional_number(r.unit_price),
            'Quantity': _optional_number(r.quantity),
            'Total Amount': _number(r.amount or 0.0),
            'Fee': _optional_number(r.fee),
            'Interest/Dividend': _optional_number(r.interest_dividend),
            'Maturity Date': r.maturity_date or '',
            'Status': r.status,
            'Currency': record_currency(r),
            'Remarks': r.remarks or '',
        })
    return buffer.getvalue().rstrip('\n')


def export_filename(today: Optional[date] = None) -> str:
    """File name offered for download, e.g. my_asset_history_2025-01-31.csv."""
    today = today or date.today()
    return f"my_asset_history_{today.isoformat()}.csv"


# ==================== Import ====================

def _coerce_type(value: str) -> str:
    label = _TYPES.get((value or '').strip().lower())
    if label is None:
        logger.warning(f"Unknown asset type {value!r} in import, using {AssetType.OTHER.value}")
        return AssetType.OTHER.value
    return label


def _coerce_status(value: str) -> str:
    return _STATUSES.get((value or '').strip().lower(), AssetStatus.ACTIVE.value)


def _row_to_record(row: Dict[str, str]) -> AssetRecord:
    amount_raw = next((row[h] for h in AMOUNT_HEADERS if row.get(h)), '')
    remarks = row.get('Remarks', '') or ''
    record = AssetRecord(
        date=normalize_date(row.get('Date', '')),
        asset_type=_coerce_type(row.get('Type', '')),
        name=(row.get('Name') or '').strip(),
        action=(row.get('Action') or '').strip(),
        amount=to_float(amount_raw),
        unit_price=to_optional_float(row.get('Unit Price')),
        quantity=to_optional_float(row.get('Quantity')),
        fee=to_optional_float(row.get('Fee')),
        maturity_date=normalize_date(row.get('Maturity Date', '')) or None,
        status=_coerce_status(row.get('Status', '')),
        currency=(row.get('Currency') or DEFAULT_CURRENCY).strip().upper(),
        remarks=remarks,
    )
    record.interest_rate = resolve_rate(to_optional_float(row.get('Interest Rate')), remarks) or None
    record.interest_dividend = resolve_interest(to_optional_float(row.get('Interest/Dividend')), remarks) or None
    return refresh_fd_interest(record)


def parse_csv(text: str) -> List[AssetRecord]:
    """
    Parse CSV text into candidate records (not yet stored).

    Raises:
        CsvImportError: when the file is empty or required headers are missing
    """
    if text.startswith('\ufeff'):
        text = text[1:]
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        raise CsvImportError("CSV file is empty or missing headers")

    try:
        rows = list(csv.reader(io.StringIO('\n'.join(lines)), skipinitialspace=True))
    except csv.Error as e:
        raise CsvImportError(f"Could not read CSV: {e}") from e

    headers = [h.strip() for h in rows[0]]
    missing = [h for h in REQUIRED_HEADERS if h not in headers]
    if not any(h in headers for h in AMOUNT_HEADERS):
        missing.append(AMOUNT_HEADERS[0])
    if missing:
        raise CsvImportError(f"Missing required headers: {', '.join(missing)}")

    records = []
    for line_no, values in enumerate(rows[1:], start=2):
        if len(values) != len(headers):
            logger.warning(f"Skipping CSV line {line_no}: expected {len(headers)} fields, got {len(values)}")
            continue
        row = {h: v.strip() for h, v in zip(headers, values)}
        records.append(_row_to_record(row))

    logger.info(f"Parsed {len(records)} records from CSV")
    return records


def record_signature(record: AssetRecord) -> tuple:
    """Fields that identify a likely duplicate: date, name, type, action, amount, currency."""
    return (
        record.date,
        (record.name or '').strip(),
        record.asset_type,
        (record.action or '').strip(),
        round(record.amount or 0.0, 2),
        record_currency(record),
    )


def flag_duplicates(candidates: Iterable[AssetRecord], existing: Iterable[AssetRecord]) -> List[ImportCandidate]:
    """
    Mark candidates whose signature matches an existing record or an earlier
    row of the same file. Ids play no part in the comparison.
    """
    seen = {record_signature(r) for r in existing}
    flagged = []
    for record in candidates:
        signature = record_signature(record)
        flagged.append(ImportCandidate(record=record, is_duplicate=signature in seen))
        seen.add(signature)
    return flagged


def import_summary(candidates: List[ImportCandidate]) -> ImportSummary:
    """Count, type spread, per-currency totals and a short preview."""
    totals: Dict[str, float] = {}
    for candidate in candidates:
        currency = record_currency(candidate.record)
        totals[currency] = round(totals.get(currency, 0.0) + (candidate.record.amount or 0.0), 2)

    return ImportSummary(
        count=len(candidates),
        type_count=len({c.record.asset_type for c in candidates}),
        duplicate_count=sum(1 for c in candidates if c.is_duplicate),
        totals_by_currency=totals,
        preview=[c.record for c in candidates[:3]],
    )
