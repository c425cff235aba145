"""Maintenance command: clear every settled txId and setting from the store."""

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from tabulate import tabulate

from settlement_api.config import Config
from settlement_api.storage import SettlementStore

logger = logging.getLogger(__name__)


def clear_database(config: Config) -> tuple[int, int]:
    """
    Delete all rows from processed_transactions and settings.

    Returns:
        (transactions removed, settings removed)
    """
    store = SettlementStore(config.database_url)
    try:
        store.create_schema()
        return store.clear()
    finally:
        store.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Remove all settled txIds and stored settings from the settlement database"
    )
    parser.add_argument(
        "--db-path",
        help="SQLite file to clear (default: SQLITE_DB_PATH or data.db)"
    )
    args = parser.parse_args(argv)

    config = Config.from_env()
    if args.db_path:
        config.sqlite_db_path = args.db_path
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not os.path.exists(config.sqlite_db_path):
        logger.error(f"Database file not found at: {config.sqlite_db_path}")
        logger.error("Check SQLITE_DB_PATH or make sure the database exists.")
        return 1

    tx_count, settings_count = clear_database(config)
    logger.info(f"Cleared database at: {config.sqlite_db_path}")
    print(tabulate(
        [["processed_transactions", tx_count], ["settings", settings_count]],
        headers=["Table", "Rows removed"],
        tablefmt="grid"
    ))
    return 0


if __name__ == "__main__":
    sys.exit(main())
