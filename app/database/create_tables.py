#!/usr/bin/env python3
"""
Create every table known to the models and seed the IAM catalog
"""
import app.models  # noqa: F401  registers all tables on Base.metadata
from app.core.logging_config import get_logger, setup_logging
from app.database.session import engine, SessionLocal, Base
from app.seed.seed_data import seed_iam

logger = get_logger(__name__)


def create_tables():
    """Initialize the database and create all tables."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialization completed")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


def init_db():
    create_tables()
    db = SessionLocal()
    try:
        seed_iam(db)
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    init_db()
