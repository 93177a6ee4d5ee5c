"""
Create the reading tracker tables

Usage:
    python scripts/init_db.py
"""
import logging

from reading_tracker.database import engine, init_db

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("init_db")


def main():
    logger.info(f"Creating tables on {engine.url.render_as_string(hide_password=True)}")
    init_db()
    logger.info("All tables created")


if __name__ == "__main__":
    main()
