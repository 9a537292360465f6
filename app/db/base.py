"""SQLAlchemy Base class for all models."""
from app.models.base.base_model import Base


def import_models():
    """Import all models to register them with SQLAlchemy."""
    import app.models  # noqa: F401

    return Base.metadata


__all__ = ["Base", "import_models"]
