"""
Record service - keeps the in-memory ledger and the record store in step.
Local state is updated before the store confirms a change and restored if
the store call fails.
"""

import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from models import AssetRecord, AssetStatus, AssetType
from repositories import AssetRecordRepository
from services.common import (
    DEFAULT_CURRENCY,
    PROPERTY_ACTIONS,
    parse_iso_date,
    to_float,
    to_optional_float,
)
from services.errors import RecordStoreError, ValidationError
from services.interest import refresh_fd_interest
from services.maturity import apply_maturity
from services.remarks import encode_remarks, resolve_interest, resolve_rate

logger = logging.getLogger(__name__)

_PROVISIONAL_PREFIX = "pending-"


def validate_record(record: AssetRecord) -> List[str]:
    """
    Boundary rules for a record submitted through the form.

    Returns:
        List of messages; empty when the record is acceptable
    """
    errors = []
    if not (record.name or '').strip():
        errors.append("Name is required.")
    if parse_iso_date(record.date) is None:
        errors.append("Date must be a valid YYYY-MM-DD date.")
    if not to_float(record.amount):
        errors.append("Total amount is required.")
    if record.asset_type not in {t.value for t in AssetType}:
        errors.append(f"Unknown asset type: {record.asset_type}.")
    if record.status not in {s.value for s in AssetStatus}:
        errors.append(f"Unknown status: {record.status}.")
    if record.asset_type == AssetType.PROPERTY and record.action not in PROPERTY_ACTIONS:
        errors.append(f"Property action must be one of: {', '.join(PROPERTY_ACTIONS)}.")
    if record.maturity_date and parse_iso_date(record.maturity_date) is None:
        errors.append("Maturity date must be a valid YYYY-MM-DD date.")
    return errors


def hydrate(record: AssetRecord) -> AssetRecord:
    """
    Fill derived fields of a record read from the store.

    Rate and interest come from their columns, falling back to remarks tags;
    fixed deposit interest is then recomputed.
    """
    record.interest_rate = resolve_rate(record.interest_rate, record.remarks) or None
    record.interest_dividend = resolve_interest(record.interest_dividend, record.remarks) or None
    record.currency = record.currency or DEFAULT_CURRENCY
    return refresh_fd_interest(record)


def prepare_for_store(draft: AssetRecord) -> AssetRecord:
    """
    Normalize a submitted record before it is written.

    Numbers are coerced (invalid -> 0 for amount, absent for the optional
    ones), remarks tags are regenerated and fixed deposit interest derived.
    """
    record = AssetRecord(
        id=draft.id,
        date=(draft.date or '').strip(),
        asset_type=draft.asset_type,
        name=(draft.name or '').strip(),
        action=(draft.action or '').strip(),
        amount=to_float(draft.amount),
        unit_price=to_optional_float(draft.unit_price),
        quantity=to_optional_float(draft.quantity),
        fee=to_optional_float(draft.fee),
        interest_rate=to_optional_float(draft.interest_rate),
        interest_dividend=to_optional_float(draft.interest_dividend),
        maturity_date=(draft.maturity_date or '').strip() or None,
        status=draft.status or AssetStatus.ACTIVE.value,
        currency=(draft.currency or DEFAULT_CURRENCY).strip().upper(),
        remarks=draft.remarks or '',
    )
    record.remarks = encode_remarks(
        record.remarks, record.asset_type, record.interest_rate, record.interest_dividend
    )
    return refresh_fd_interest(record)


def _store_fields(record: AssetRecord) -> Dict:
    return record.model_dump(exclude={'id'})


class RecordService:
    """
    Loads, saves and deletes records while keeping a local copy for the dashboard.

    Every mutation is applied to the local list first. If the store call
    fails the previous list is restored and RecordStoreError is raised.
    """

    def __init__(
        self,
        repository=AssetRecordRepository,
        on_change: Optional[Callable[[List[AssetRecord]], None]] = None
    ):
        self.repository = repository
        self.on_change = on_change
        self.records: List[AssetRecord] = []
        self.last_error: Optional[str] = None

    def _set(self, records: List[AssetRecord]):
        self.records = records
        if self.on_change is not None:
            self.on_change(self.records)

    # ==================== Read ====================

    def load(self, today: Optional[date] = None) -> bool:
        """
        Fetch every record, derive interest and apply maturity transitions.

        On failure the error is logged, last_error is set and the current
        records are kept.

        Returns:
            True when the records were refreshed
        """
        try:
            fetched = self.repository.list_all()
        except Exception as e:
            logger.error(f"Error fetching records: {e}")
            self.last_error = f"Failed to fetch records: {e}"
            return False

        records = [hydrate(r) for r in fetched]
        apply_maturity(records, today, persist=self._persist_status)
        self.last_error = None
        self._set(records)
        logger.info(f"Loaded {len(records)} records")
        return True

    def _persist_status(self, record: AssetRecord):
        try:
            self.repository.update(record.id, {'status': record.status})
        except Exception as e:
            # Kept in memory; the next load retries the transition
            logger.error(f"Could not persist status of {record.id}: {e}")

    def get(self, record_id: str) -> Optional[AssetRecord]:
        return next((r for r in self.records if r.id == record_id), None)

    # ==================== Write ====================

    def save(self, draft: AssetRecord, record_id: Optional[str] = None) -> AssetRecord:
        """
        Create a record, or replace the editable fields of record_id.

        Raises:
            ValidationError: when the draft breaks a boundary rule
            RecordStoreError: when the store rejects the write
        """
        errors = validate_record(draft)
        if errors:
            raise ValidationError(errors)

        record = prepare_for_store(draft)
        if record_id:
            return self._update(record_id, record)
        return self._create(record)

    def _create(self, record: AssetRecord) -> AssetRecord:
        previous = self.records
        provisional = record.copy_record()
        provisional.id = f"{_PROVISIONAL_PREFIX}{id(provisional)}"
        self._set([provisional] + previous)

        try:
            stored = self.repository.insert(record)
        except Exception as e:
            logger.error(f"Error saving record: {e}")
            self._set(previous)
            raise RecordStoreError(f"Failed to save record: {e}") from e

        created = hydrate(stored)
        self._set([created] + previous)
        logger.info(f"Created record {created.id} ({created.asset_type} {created.name})")
        return created

    def _update(self, record_id: str, record: AssetRecord) -> AssetRecord:
        previous = self.records
        record.id = record_id
        self._set([record if r.id == record_id else r for r in previous])

        try:
            found = self.repository.update(record_id, _store_fields(record))
        except Exception as e:
            logger.error(f"Error updating record {record_id}: {e}")
            self._set(previous)
            raise RecordStoreError(f"Failed to save record: {e}") from e

        if not found:
            self._set(previous)
            raise RecordStoreError(f"Record {record_id} no longer exists")

        logger.info(f"Updated record {record_id}")
        return record

    def delete(self, record_id: str) -> None:
        """Delete one record. Raises RecordStoreError (after restoring it locally) on failure."""
        previous = self.records
        self._set([r for r in previous if r.id != record_id])

        try:
            self.repository.delete(record_id)
        except Exception as e:
            logger.error(f"Error deleting record {record_id}: {e}")
            self._set(previous)
            raise RecordStoreError(f"Failed to delete record: {e}") from e

    def delete_many(self, record_ids: Iterable[str]) -> int:
        """Delete several records at once. Returns the number removed locally."""
        ids = set(record_ids)
        if not ids:
            return 0
        previous = self.records
        remaining = [r for r in previous if r.id not in ids]
        self._set(remaining)

        try:
            self.repository.delete_many(ids)
        except Exception as e:
            logger.error(f"Error batch deleting {len(ids)} records: {e}")
            self._set(previous)
            raise RecordStoreError(f"Failed to delete records: {e}") from e

        return len(previous) - len(remaining)

    def import_records(self, records: Iterable[AssetRecord]) -> List[AssetRecord]:
        """
        Store parsed CSV records in one transaction.

        Remarks tags are regenerated the same way as for form submissions.
        Rows that fail validation are skipped with a warning.
        """
        prepared = []
        for record in records:
            errors = validate_record(record)
            if errors:
                logger.warning(f"Skipping imported row {record.date} {record.name!r}: {'; '.join(errors)}")
                continue
            prepared.append(prepare_for_store(record))
        if not prepared:
            return []

        try:
            stored = self.repository.insert_many(prepared)
        except Exception as e:
            logger.error(f"Error importing {len(prepared)} records: {e}")
            raise RecordStoreError(f"Failed to import records: {e}") from e

        created = [hydrate(r) for r in stored]
        self._set(created + self.records)
        logger.info(f"Imported {len(created)} records")
        return created
