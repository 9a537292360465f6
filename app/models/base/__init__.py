"""
Base models package.

Provides the declarative base and abstract base classes for all
database models.
"""

from app.models.base.base_model import Base, BaseModel, TimestampModel, generate_uuid

__all__ = ["Base", "BaseModel", "TimestampModel", "generate_uuid"]
