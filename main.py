import logging
import os
import sys

import uvicorn

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from api.app import create_app
from database.db_manager import DatabaseManager
from utils.app_config import get_settings

LOGGER = logging.getLogger("recurring_ledger")


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    # ── Configuration ────────────────────────────────────────────────────────
    settings = get_settings()
    configure_logging(settings.log_level)

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager(settings.db_path)
    LOGGER.info("Using database %s", os.path.abspath(settings.db_path))

    # ── Serve ────────────────────────────────────────────────────────────────
    app = create_app(settings=settings, db=db)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    finally:
        db.close()


if __name__ == "__main__":
    main()
