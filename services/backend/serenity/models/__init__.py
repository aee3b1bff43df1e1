"""SQLAlchemy models and declarative base."""

from serenity.models.base import Base  # noqa: F401
from serenity.models.entities import MoodLog  # noqa: F401

__all__ = [
    "Base",
    "MoodLog",
]
