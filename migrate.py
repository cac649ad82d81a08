"""
Database migration script for MyAsset.
Adds the interest columns to older databases and moves values that were
only stored as remarks tags ([Rate: x%], [Int: y]) into them.
"""

import sqlite3
import os
from typing import Optional

from config import get_settings
from models import AssetType
from services.remarks import parse_interest, parse_rate

TABLE = "assetrecord"


def get_db_file(database_url: Optional[str] = None) -> str:
    """Path of the SQLite file behind a sqlite:/// URL."""
    url = database_url or get_settings().database_url
    prefix = "sqlite:///"
    if not url.startswith(prefix):
        raise ValueError(f"Only SQLite databases can be migrated, got {url}")
    return url[len(prefix):]


def migrate_assetrecord_add_interest_columns(db_file: str) -> None:
    """Add interest_rate and interest_dividend columns if they don't exist."""
    if not os.path.exists(db_file):
        print(f"Database {db_file} does not exist. Nothing to migrate.")
        return

    conn = sqlite3.connect(db_file)
    cursor = conn.cursor()

    try:
        cursor.execute(f"PRAGMA table_info({TABLE})")
        columns = [col[1] for col in cursor.fetchall()]
        if not columns:
            print(f"Table '{TABLE}' does not exist. Nothing to migrate.")
            return

        for column in ("interest_rate", "interest_dividend"):
            if column not in columns:
                print(f"Adding '{column}' column to {TABLE} table...")
                cursor.execute(f"ALTER TABLE {TABLE} ADD COLUMN {column} REAL")
                print(f"✓ Added '{column}' column successfully.")
            else:
                print(f"✓ Column '{column}' already exists in {TABLE} table.")
        conn.commit()

    except sqlite3.OperationalError as e:
        print(f"Error during migration: {e}")
        conn.rollback()
    finally:
        conn.close()


def migrate_decode_remarks_tags(db_file: str) -> int:
    """
    Copy tag-encoded values from remarks into the dedicated columns.

    Only empty columns are filled; fixed deposit interest is skipped because
    it is derived from the other fields on load.

    Returns:
        Number of rows updated
    """
    if not os.path.exists(db_file):
        print(f"Database {db_file} does not exist. Nothing to migrate.")
        return 0

    conn = sqlite3.connect(db_file)
    cursor = conn.cursor()
    updated = 0

    try:
        cursor.execute(
            f"SELECT id, asset_type, remarks, interest_rate, interest_dividend FROM {TABLE} "
            "WHERE remarks LIKE '%[Rate:%' OR remarks LIKE '%[Int:%'"
        )
        for record_id, asset_type, remarks, rate, interest in cursor.fetchall():
            new_rate = rate or parse_rate(remarks) or None
            new_interest = interest
            if not interest and asset_type != AssetType.FIXED_DEPOSIT.value:
                new_interest = parse_interest(remarks) or None
            if (new_rate, new_interest) != (rate, interest):
                conn.execute(
                    f"UPDATE {TABLE} SET interest_rate = ?, interest_dividend = ? WHERE id = ?",
                    (new_rate, new_interest, record_id)
                )
                updated += 1
        conn.commit()
        print(f"✓ Decoded remarks tags into columns for {updated} record(s).")

    except sqlite3.OperationalError as e:
        print(f"Error during migration: {e}")
        conn.rollback()
    finally:
        conn.close()

    return updated


def run_all_migrations(database_url: Optional[str] = None):
    """Run all pending migrations."""
    db_file = get_db_file(database_url)

    print("=" * 60)
    print("MyAsset Database Migration")
    print("=" * 60)

    migrate_assetrecord_add_interest_columns(db_file)
    migrate_decode_remarks_tags(db_file)

    print("=" * 60)
    print("Migration complete!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_migrations()
