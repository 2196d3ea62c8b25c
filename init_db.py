"""
Database initialization script.
Creates missing tables, or applies Alembic migrations with --migrate.
Run this as: python init_db.py [--migrate]
"""

import argparse
import logging
import sys

from sqlalchemy import inspect

from app.core.config import settings
from app.db.session import engine
from app.db.init_db import create_all_tables, run_migrations

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("db-init")

def init_db(migrate: bool = False) -> bool:
    """Initialize the database and report which tables exist afterwards."""
    logger.info(f"Initializing database at: {engine.url.render_as_string(hide_password=True)}")

    existing_tables = inspect(engine).get_table_names()
    logger.info(f"Existing tables: {existing_tables}")

    if migrate:
        try:
            run_migrations()
        except Exception:
            return False
    elif not create_all_tables():
        return False

    tables_after = inspect(engine).get_table_names()
    new_tables = set(tables_after) - set(existing_tables)
    if new_tables:
        logger.info(f"Newly created tables: {new_tables}")
    else:
        logger.info("No new tables were created")
    return True

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=f"Initialize the {settings.PROJECT_NAME} database")
    parser.add_argument("--migrate", action="store_true", help="Apply Alembic migrations instead of create_all")
    args = parser.parse_args()

    logger.info("Starting database initialization")
    if init_db(migrate=args.migrate):
        logger.info("Database initialization completed successfully")
    else:
        logger.error("Database initialization failed")
        sys.exit(1)
