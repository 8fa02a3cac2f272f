"""
Entity snapshot providers consumed by the preprocessing phase.

The engine never talks to a database directly. Whatever hosts it hands
in an EntityRepository, opens it for the duration of a run and closes it
afterwards.
"""
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from models.schemas import Teacher, Subject, Classroom, Batch
import logging

logger = logging.getLogger(__name__)


class RepositoryClosedError(RuntimeError):
    """Raised when a repository is read before open() or after close()."""


class EntityRepository(ABC):
    """
    Read-only source of Teacher/Subject/Classroom/Batch records.

    Supports use as a context manager:

        with repository:
            scheduler.generate_timetable(batch_ids)
    """

    def __init__(self):
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self):
        self._is_open = True

    def close(self):
        self._is_open = False

    def __enter__(self) -> "EntityRepository":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _ensure_open(self):
        if not self._is_open:
            raise RepositoryClosedError(f"{type(self).__name__} is not open")

    @abstractmethod
    def get_batches(self, batch_ids: Iterable[str]) -> List[Batch]:
        """Return the batches whose ids are in batch_ids."""

    @abstractmethod
    def get_teachers(self) -> List[Teacher]:
        pass

    @abstractmethod
    def get_subjects(self) -> List[Subject]:
        pass

    @abstractmethod
    def get_classrooms(self) -> List[Classroom]:
        pass


class InMemoryRepository(EntityRepository):
    """Repository over entity lists held in memory, copied on construction."""

    def __init__(
        self,
        teachers: Optional[List[Teacher]] = None,
        subjects: Optional[List[Subject]] = None,
        classrooms: Optional[List[Classroom]] = None,
        batches: Optional[List[Batch]] = None
    ):
        super().__init__()
        self._teachers = [t.model_copy(deep=True) for t in teachers or []]
        self._subjects = [s.model_copy(deep=True) for s in subjects or []]
        self._classrooms = [c.model_copy(deep=True) for c in classrooms or []]
        self._batches = [b.model_copy(deep=True) for b in batches or []]

    def open(self):
        super().open()
        logger.debug(
            f"Opened snapshot: {len(self._teachers)} teachers, {len(self._subjects)} subjects, "
            f"{len(self._classrooms)} classrooms, {len(self._batches)} batches"
        )

    def get_batches(self, batch_ids: Iterable[str]) -> List[Batch]:
        self._ensure_open()
        wanted = set(batch_ids)
        return [b.model_copy(deep=True) for b in self._batches if b.batch_id in wanted]

    def get_teachers(self) -> List[Teacher]:
        self._ensure_open()
        return [t.model_copy(deep=True) for t in self._teachers]

    def get_subjects(self) -> List[Subject]:
        self._ensure_open()
        return [s.model_copy(deep=True) for s in self._subjects]

    def get_classrooms(self) -> List[Classroom]:
        self._ensure_open()
        return [c.model_copy(deep=True) for c in self._classrooms]

    def missing_batch_ids(self, batch_ids: Iterable[str]) -> List[str]:
        """Return the requested batch ids that are not in the snapshot, in request order."""
        self._ensure_open()
        known = {b.batch_id for b in self._batches}
        return [batch_id for batch_id in batch_ids if batch_id not in known]
