#!/usr/bin/env python3
"""Create the phone number registry and transaction tables. Safe to run repeatedly."""
import logging

from sqlalchemy import inspect

from app.core.database import Base, engine
from app.core.logging import configure_logging
from app.models import AirtimeTransaction, PhoneNumber


logger = logging.getLogger("setup_db")


def main():
    configure_logging()
    logger.info("Connecting to %s", engine.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=engine, tables=[PhoneNumber.__table__, AirtimeTransaction.__table__])
    present = inspect(engine).get_table_names()
    for table in (PhoneNumber.__tablename__, AirtimeTransaction.__tablename__):
        if table not in present:
            raise SystemExit(f"Table {table} was not created")
        logger.info("Table %s ready", table)
    logger.info("Database setup completed")


if __name__ == "__main__":
    main()
