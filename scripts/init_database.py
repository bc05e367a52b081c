#!/usr/bin/env python3
"""
Initialize database tables from SQLAlchemy models.

Creates the competitions, teams, matches and sync_metadata tables if they
do not exist yet.
"""
import sys
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import logging

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Create all database tables from models."""
    from football_sync.core.database import init_db

    logger.info("Creating database tables from SQLAlchemy models...")
    init_db()
    logger.info("All database tables created successfully")


if __name__ == "__main__":
    main()
