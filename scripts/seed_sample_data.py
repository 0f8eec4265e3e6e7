#!/usr/bin/env python3
# scripts/seed_sample_data.py
"""
Seed the database with a few purchase lots and settings for local demos.

Idempotent: lots are only added when the table is empty.
    python scripts/seed_sample_data.py
"""

import logging
from datetime import date
from decimal import Decimal

from portfolio_tracker.database import SessionLocal, init_database
from portfolio_tracker.services.lot_store import LotStore
from portfolio_tracker.services.settings_service import SettingsService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_LOTS = [
    {"symbol": "AAPL", "quantity": Decimal("10"), "buy_price": Decimal("100.00"), "purchase_date": date(2024, 1, 15)},
    {"symbol": "AAPL", "quantity": Decimal("5"), "buy_price": Decimal("110.00"), "purchase_date": date(2024, 6, 3)},
    {"symbol": "MSFT", "quantity": Decimal("4"), "buy_price": Decimal("380.50"), "purchase_date": date(2024, 3, 8)},
    {"symbol": "NVDA", "quantity": Decimal("2.5"), "buy_price": Decimal("475.20"), "purchase_date": date(2023, 11, 20)},
]

SAMPLE_SETTINGS = {
    "currency": "USD",
    "theme": "system",
    "refreshInterval": 30,
}


def seed():
    init_database()
    store = LotStore()
    settings_service = SettingsService()

    db = SessionLocal()
    try:
        logger.info("Starting database seeding...")

        if store.list(db):
            logger.info("Lots already present, skipping lots")
        else:
            for lot in SAMPLE_LOTS:
                created = store.create(db, **lot)
                logger.info(f"Created lot {created.id}: {created.symbol}")

        settings_service.update(db, SAMPLE_SETTINGS)
        logger.info(f"Settings: {settings_service.get_all(db)}")

        logger.info("Seeding complete")
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
