"""
Timetable generation engine.
"""
from .scheduler import TimetableScheduler
from .repository import EntityRepository, InMemoryRepository, RepositoryClosedError

__all__ = [
    "TimetableScheduler",
    "EntityRepository",
    "InMemoryRepository",
    "RepositoryClosedError"
]
