# app/db/init_db.py
"""Database initialization utilities."""
from typing import Optional

from sqlalchemy.engine import Engine

from app.core.logging import get_logger
from app.db.base import Base, import_models

logger = get_logger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create all tables that do not exist yet.

    Suitable for development and tests; production deployments manage the
    schema with migrations.
    """
    if bind is None:
        from app.db.session import engine as bind

    import_models()
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database initialized with {len(Base.metadata.tables)} tables")


def drop_db(bind: Optional[Engine] = None) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data! Only for development/testing.
    """
    if bind is None:
        from app.db.session import engine as bind

    import_models()
    Base.metadata.drop_all(bind=bind)
    logger.warning("All database tables dropped")
