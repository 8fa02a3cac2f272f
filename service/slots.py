"""
Weekly slot grid helpers shared by the scheduling phases.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Set, Tuple
from models.schemas import Assignment, TimeSlot

DAYS_PER_WEEK = 6
PERIODS_PER_DAY = 6
TOTAL_SLOTS = DAYS_PER_WEEK * PERIODS_PER_DAY


def slot_to_index(day: int, period: int) -> int:
    """Convert a 1-based (day, period) pair to a slot index in [0, 35]."""
    return (day - 1) * PERIODS_PER_DAY + (period - 1)


def index_to_slot(index: int) -> Tuple[int, int]:
    """Convert a slot index back to its 1-based (day, period) pair."""
    return index // PERIODS_PER_DAY + 1, index % PERIODS_PER_DAY + 1


def is_slot_listed(slots: Iterable[TimeSlot], day: int, period: int) -> bool:
    """Check whether (day, period) appears in an unavailable/preferred slot list."""
    return any(slot.day == day and slot.period == period for slot in slots)


@dataclass
class SlotUsage:
    """Resources occupied in one slot."""
    teachers: Set[str] = field(default_factory=set)
    classrooms: Set[str] = field(default_factory=set)
    batches: Set[str] = field(default_factory=set)
    
    def occupy(self, assignment: Assignment):
        self.teachers.add(assignment.teacher_id)
        self.classrooms.add(assignment.classroom_id)
        self.batches.add(assignment.batch_id)


def empty_slot_usage() -> List[SlotUsage]:
    return [SlotUsage() for _ in range(TOTAL_SLOTS)]


def build_slot_usage(schedule: Iterable[Assignment]) -> List[SlotUsage]:
    """Derive per-slot usage from an assignment list."""
    slot_usage = empty_slot_usage()
    for assignment in schedule:
        slot_usage[slot_to_index(assignment.day, assignment.period)].occupy(assignment)
    return slot_usage
