"""
SQLite record store engine.
The dashboard and the maturity monitor open the same file, so the journal
runs in WAL mode with a busy timeout.
"""

from sqlmodel import SQLModel, Session, create_engine
from typing import Optional
import logging

from config import get_settings

logger = logging.getLogger(__name__)

_engine: Optional[object] = None


def get_engine():
    """Engine for settings.database_url, created on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            echo=settings.db_echo,
            # Streamlit reruns and the APScheduler thread share the engine
            connect_args={"check_same_thread": False}
        )
        _enable_wal_mode()
    return _engine


def reset_engine():
    """Dispose the current engine so the next call picks up fresh settings."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def _enable_wal_mode():
    if _engine is None:
        return

    try:
        with _engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            conn.exec_driver_sql("PRAGMA busy_timeout=5000")
            logger.info("Record store opened in WAL mode")
    except Exception as e:
        logger.warning(f"Could not enable WAL mode: {e}")


def init_db():
    """Create the assetrecord and userpreferences tables if missing."""
    from models import AssetRecord, UserPreferences  # noqa: F401 (registers the tables)

    SQLModel.metadata.create_all(get_engine())
    logger.info("Record store initialized")


def get_session() -> Session:
    return Session(get_engine())
