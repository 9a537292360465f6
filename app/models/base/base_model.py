"""
Declarative base and the abstract models every table derives from.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declarative_base, mapped_column
from sqlalchemy.sql import func

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid4())


class BaseModel(Base):
    """String UUID primary key, generated client-side so ids exist before flush."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


class TimestampModel(BaseModel):
    """
    Row bookkeeping timestamps maintained by the database.

    These are not business time: audit entries and forecasts take their
    timestamps from the injected clock instead.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
