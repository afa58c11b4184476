"""Database configuration and utilities."""

from .session import SessionLocal
from .unit_of_work import UnitOfWork

__all__ = ["SessionLocal", "UnitOfWork"]
