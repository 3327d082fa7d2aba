"""
Repository layer for data access.

Usage:
    from app.repositories import MatchRepository
    from app.core.database import SessionLocal

    db = SessionLocal()
    repo = MatchRepository(db)
    live = repo.find_by_status("live")
    db.close()
"""

from app.repositories.base import BaseRepository
from app.repositories.match_repository import MatchRepository

__all__ = [
    "BaseRepository",
    "MatchRepository",
]
