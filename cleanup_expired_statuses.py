"""
Soft-delete statuses whose 24 hour window has passed.
Meant to run from cron, e.g. every 15 minutes: python cleanup_expired_statuses.py
"""

import logging
import sys

from app.db.session import SessionLocal
from app.modules.statuses.services import status_store

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("status-cleanup")

def cleanup_expired_statuses() -> int:
    db = SessionLocal()
    try:
        return status_store.delete_expired(db)
    finally:
        db.close()

if __name__ == "__main__":
    try:
        removed = cleanup_expired_statuses()
    except Exception as e:
        logger.error(f"Status cleanup failed: {e}")
        sys.exit(1)
    logger.info(f"Status cleanup finished, {removed} statuses expired")
