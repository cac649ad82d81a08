"""
AssetRecord Repository - data access layer for AssetRecord model.
Optimized with optional session parameter for transaction reuse.
"""

import uuid
from typing import Optional, List, Dict, Any, Iterable
from sqlmodel import Session, select, col

from db_engine import get_engine
from models import AssetRecord

# Columns a caller may change through update(); id is immutable
UPDATABLE_FIELDS = {
    'date', 'asset_type', 'name', 'action', 'amount', 'unit_price', 'quantity',
    'fee', 'interest_rate', 'interest_dividend', 'maturity_date', 'status',
    'currency', 'remarks',
}


def new_record_id() -> str:
    """Generate an opaque record identifier."""
    return uuid.uuid4().hex


class AssetRecordRepository:
    """Repository for AssetRecord CRUD operations."""

    @staticmethod
    def list_all(session: Optional[Session] = None) -> List[AssetRecord]:
        """
        Retrieve all records, newest first.

        Args:
            session: Optional existing session for transaction reuse

        Returns:
            List of AssetRecord objects ordered by date descending
        """
        def _list_all(sess: Session) -> List[AssetRecord]:
            statement = select(AssetRecord).order_by(col(AssetRecord.date).desc())
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _list_all(session)
        else:
            with Session(get_engine()) as session:
                return _list_all(session)

    @staticmethod
    def get_by_id(record_id: str, session: Optional[Session] = None) -> Optional[AssetRecord]:
        """
        Retrieve a record by its ID.

        Args:
            record_id: Record ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            AssetRecord object or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[AssetRecord]:
            return sess.get(AssetRecord, record_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def insert(record: AssetRecord, session: Optional[Session] = None) -> AssetRecord:
        """
        Insert a new record. The store assigns the id.

        Args:
            record: Record to persist (its id, if any, is replaced)
            session: Optional existing session for transaction reuse

        Returns:
            Created AssetRecord object
        """
        def _insert(sess: Session) -> AssetRecord:
            data = record.model_dump(exclude={'id'})
            stored = AssetRecord(id=new_record_id(), **data)
            try:
                sess.add(stored)
                sess.commit()
                sess.refresh(stored)
                return stored
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _insert(session)
        else:
            with Session(get_engine()) as session:
                return _insert(session)

    @staticmethod
    def insert_many(records: Iterable[AssetRecord], session: Optional[Session] = None) -> List[AssetRecord]:
        """
        Insert several records in one transaction (used by CSV import).

        Returns:
            Created AssetRecord objects in input order
        """
        def _insert_many(sess: Session) -> List[AssetRecord]:
            stored = [
                AssetRecord(id=new_record_id(), **r.model_dump(exclude={'id'}))
                for r in records
            ]
            try:
                sess.add_all(stored)
                sess.commit()
                for r in stored:
                    sess.refresh(r)
                return stored
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _insert_many(session)
        else:
            with Session(get_engine()) as session:
                return _insert_many(session)

    @staticmethod
    def update(record_id: str, fields: Dict[str, Any], session: Optional[Session] = None) -> bool:
        """
        Update an existing record.
        Only the given fields are written.

        Args:
            record_id: Record ID to update
            fields: Mapping of column name to new value
            session: Optional existing session for transaction reuse

        Returns:
            True if the record existed, False otherwise
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        def _update(sess: Session) -> bool:
            try:
                record = sess.get(AssetRecord, record_id)
                if record is None:
                    return False
                for key, value in fields.items():
                    setattr(record, key, value)
                sess.add(record)
                sess.commit()
                return True
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _update(session)
        else:
            with Session(get_engine()) as session:
                return _update(session)

    @staticmethod
    def delete(record_id: str, session: Optional[Session] = None) -> bool:
        """
        Delete a record by its ID.

        Returns:
            True if a record was deleted, False otherwise
        """
        def _delete(sess: Session) -> bool:
            try:
                record = sess.get(AssetRecord, record_id)
                if record:
                    sess.delete(record)
                    sess.commit()
                    return True
                return False
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine()) as session:
                return _delete(session)

    @staticmethod
    def delete_many(record_ids: Iterable[str], session: Optional[Session] = None) -> int:
        """
        Delete all records whose id is in record_ids.

        Returns:
            Number of records deleted
        """
        ids = list(record_ids)

        def _delete_many(sess: Session) -> int:
            if not ids:
                return 0
            try:
                statement = select(AssetRecord).where(col(AssetRecord.id).in_(ids))
                count = 0
                for record in sess.exec(statement).all():
                    sess.delete(record)
                    count += 1
                sess.commit()
                return count
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _delete_many(session)
        else:
            with Session(get_engine()) as session:
                return _delete_many(session)
