#!/usr/bin/env python3
# init_db.py
"""
Database initialization script.

Creates the lots and user_settings tables in DATABASE_URL:
    python init_db.py
"""

from portfolio_tracker.database import init_database, engine


def init_db() -> None:
    """Create all database tables defined in models."""
    print(f"Creating database tables ({engine.url.render_as_string(hide_password=True)})...")
    init_database()
    print("Tables created successfully!")


if __name__ == "__main__":
    init_db()
