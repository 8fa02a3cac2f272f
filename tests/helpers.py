"""
Entity builders and schedule checks shared by the test modules.
"""
from collections import Counter
from typing import Dict, List
from models.schemas import Teacher, Subject, Classroom, Batch, Task, Assignment, TimeSlot
from service.priority_queue import PriorityQueue
from service.slots import DAYS_PER_WEEK, PERIODS_PER_DAY, TOTAL_SLOTS


def make_teacher(teacher_id, subjects, **kwargs) -> Teacher:
    return Teacher(teacher_id=teacher_id, name=f"Teacher {teacher_id}", subjects=subjects, **kwargs)


def make_classroom(classroom_id, capacity=40, room_type="lecture", **kwargs) -> Classroom:
    return Classroom(classroom_id=classroom_id, name=f"Room {classroom_id}", capacity=capacity, type=room_type, **kwargs)


def make_batch(batch_id, subject_periods, student_count=30) -> Batch:
    return Batch(batch_id=batch_id, name=f"Batch {batch_id}", student_count=student_count,
                 subject_periods=subject_periods)


def make_subject(subject_id, name=None) -> Subject:
    return Subject(subject_id=subject_id, name=name or subject_id.title())


def all_slots_except(*kept) -> List[TimeSlot]:
    """Every slot of the week except the given (day, period) pairs."""
    return [
        TimeSlot(day=day, period=period)
        for day in range(1, DAYS_PER_WEEK + 1)
        for period in range(1, PERIODS_PER_DAY + 1)
        if (day, period) not in kept
    ]


def queue_of(tasks: List[Task]) -> PriorityQueue:
    queue = PriorityQueue()
    for priority, task in enumerate(reversed(tasks)):
        queue.enqueue(task, priority)
    return queue


def full_validity(tasks: List[Task]) -> Dict[str, List[bool]]:
    return {task.task_id: [True] * TOTAL_SLOTS for task in tasks}


def assert_schedule_invariants(schedule: List[Assignment], teachers, classrooms, batches):
    """No double booking, teacher limits and classroom capacity hold."""
    for key in ("teacher_id", "classroom_id", "batch_id"):
        used = Counter((a.day, a.period, getattr(a, key)) for a in schedule)
        duplicates = [k for k, count in used.items() if count > 1]
        assert not duplicates, f"double-booked {key}: {duplicates}"

    teachers_by_id = {t.teacher_id: t for t in teachers}
    daily = Counter((a.teacher_id, a.day) for a in schedule)
    weekly = Counter(a.teacher_id for a in schedule)
    for (teacher_id, day), count in daily.items():
        assert count <= teachers_by_id[teacher_id].max_periods_per_day
    for teacher_id, count in weekly.items():
        assert count <= teachers_by_id[teacher_id].max_periods_per_week

    capacity = {c.classroom_id: c.capacity for c in classrooms}
    students = {b.batch_id: b.student_count for b in batches}
    for a in schedule:
        assert capacity[a.classroom_id] >= students[a.batch_id]

    for a in schedule:
        teacher = teachers_by_id[a.teacher_id]
        assert a.subject_id in teacher.subjects
        assert (a.day, a.period) not in {(s.day, s.period) for s in teacher.unavailable_slots}
