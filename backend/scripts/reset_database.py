#!/usr/bin/env python3
"""
Rebuild the invoice ledger schema through its Alembic migrations.

Stamped databases are downgraded to base; anything left over from a
create_all() or an unstamped copy is dropped. The schema is then upgraded
to head, so the result always carries a valid alembic_version.

WARNING: every invoice, item, tag and reference row is deleted.

Usage:
    python scripts/reset_database.py [--yes]
"""
import argparse
import logging
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from dotenv import load_dotenv
load_dotenv(BACKEND_DIR / ".env")

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect

from app.config import settings
from app.database import Base, engine
import app.models  # noqa: F401

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def alembic_config() -> Config:
    # Built without alembic.ini so env.py leaves this script's logging alone
    config = Config()
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", settings.database_url)
    return config


def current_revision():
    with engine.connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def reset_database(assume_yes: bool = False) -> bool:
    """Returns False when the operator backs out."""
    logger.warning(f"Resetting ledger schema at {settings.database_url}, all data will be lost")

    if not assume_yes:
        answer = input("Type 'yes' to continue: ")
        if answer.strip().lower() != "yes":
            logger.info("Aborted, nothing changed")
            return False

    config = alembic_config()

    revision = current_revision()
    if revision:
        logger.info(f"Downgrading from {revision} to base")
        command.downgrade(config, "base")

    leftovers = [name for name in inspect(engine).get_table_names() if name in Base.metadata.tables]
    if leftovers:
        logger.info(f"Dropping unversioned tables: {', '.join(sorted(leftovers))}")
        Base.metadata.drop_all(bind=engine)

    logger.info("Upgrading to head")
    command.upgrade(config, "head")
    logger.info(f"Schema is at {current_revision()}")
    return True


def main():
    parser = argparse.ArgumentParser(description="Drop and rebuild the invoice ledger schema")
    parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    args = parser.parse_args()

    if not reset_database(assume_yes=args.yes):
        sys.exit(1)


if __name__ == "__main__":
    main()
