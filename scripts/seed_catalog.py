#!/usr/bin/env python3
"""Load hotels and their room types from a JSON file into the database."""
import argparse
import json
import logging
from pathlib import Path

from bookaway.database import Base, SessionLocal, engine
from bookaway.inventory import InventoryStore
from bookaway.logging_middleware import configure_logging

logger = logging.getLogger("seed_catalog")


def seed(path: Path, create_tables: bool = True) -> int:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if create_tables:
        Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        hotels = InventoryStore(db).load_catalog(payload)
    return len(hotels)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("catalog", type=Path, help="JSON list of hotels, each with a 'rooms' list")
    parser.add_argument("--no-create-tables", action="store_true", help="Assume the schema already exists")
    args = parser.parse_args()

    configure_logging()
    count = seed(args.catalog, create_tables=not args.no_create_tables)
    logger.info("Seeded %d hotels from %s", count, args.catalog)


if __name__ == "__main__":
    main()
