"""
Background maturity monitor using APScheduler.
Runs once a day to move matured fixed deposits from Active to Mature,
so the store is up to date even when nobody opens the dashboard.
"""

import time
from datetime import date
from typing import Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
import logging
from dotenv import load_dotenv

from config import get_settings
from db_engine import init_db
from repositories import AssetRecordRepository
from services.maturity import apply_maturity

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def check_maturities(today: Optional[date] = None) -> int:
    """
    Sweep the store for matured fixed deposits and persist their new status.

    Args:
        today: Date to compare maturity dates against (defaults to today)

    Returns:
        Number of records transitioned
    """
    logger.info("=" * 60)
    logger.info(f"Starting maturity check at {date.today().isoformat()}")
    logger.info("=" * 60)

    try:
        records = AssetRecordRepository.list_all()
    except Exception as e:
        logger.error(f"Could not load records for maturity check: {e}")
        return 0

    if not records:
        logger.info("No records in database to check.")
        return 0

    transitioned = 0
    for record in apply_maturity(records, today):
        try:
            AssetRecordRepository.update(record.id, {'status': record.status})
            transitioned += 1
        except Exception as e:
            logger.error(f"Failed to mark {record.name} ({record.id}) as mature: {e}")

    logger.info(f"Maturity check complete. Records matured: {transitioned}")
    return transitioned


def start_monitor_scheduler() -> BackgroundScheduler:
    """
    Start the background scheduler for the maturity sweep.
    Runs daily at settings.maturity_check_hour.
    """
    settings = get_settings()
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        check_maturities,
        trigger=CronTrigger(hour=settings.maturity_check_hour, minute='0'),
        id='maturity_check',
        name='Fixed Deposit Maturity Check',
        replace_existing=True
    )

    # Also run once at startup so a late start does not miss a day
    logger.info("Running initial maturity check on startup...")
    check_maturities()

    scheduler.start()
    logger.info(f"Maturity monitor started. Running daily at {settings.maturity_check_hour:02d}:00.")

    return scheduler


if __name__ == "__main__":
    import sys

    logging.basicConfig(
        level=get_settings().log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    init_db()

    if len(sys.argv) > 1 and sys.argv[1] == "--once":
        check_maturities()
    else:
        scheduler = start_monitor_scheduler()
        try:
            print("\n" + "=" * 60)
            print("MyAsset Maturity Monitor is running...")
            print("Press Ctrl+C to stop.")
            print("=" * 60 + "\n")

            while True:
                time.sleep(1)

        except (KeyboardInterrupt, SystemExit):
            logger.info("Shutting down maturity monitor...")
            scheduler.shutdown()
            logger.info("Maturity monitor stopped.")
