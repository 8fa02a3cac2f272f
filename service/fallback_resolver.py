"""
Phase 3: first-fit placement of the periods the greedy phase left over.

This is a bounded second pass, not a backtracking search: earlier
assignments are never undone. A global step budget shared by all tasks
caps its running time.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from models.schemas import Teacher, Classroom, Batch, Task, Assignment
from service.slots import TOTAL_SLOTS, SlotUsage, build_slot_usage, index_to_slot, is_slot_listed
import logging

logger = logging.getLogger(__name__)

MAX_FALLBACK_ITERATIONS = 10000


@dataclass
class FallbackResult:
    schedule: List[Assignment]
    success: bool = True
    errors: List[str] = field(default_factory=list)


class FallbackResolver:
    """Scans slots in index order for each residual task."""

    def __init__(
        self,
        teachers: List[Teacher],
        classrooms: List[Classroom],
        batches: List[Batch],
        max_iterations: int = MAX_FALLBACK_ITERATIONS
    ):
        self.teachers = teachers
        self.classrooms = classrooms
        self.batches_by_id: Dict[str, Batch] = {b.batch_id: b for b in batches}
        self.max_iterations = max_iterations

    def resolve(self, initial_schedule: List[Assignment], unassigned_tasks: List[Task]) -> FallbackResult:
        """
        Try to place every residual task.

        Args:
            initial_schedule: Assignments made so far; not modified
            unassigned_tasks: Tasks carrying only their unmet period counts

        Returns:
            FallbackResult with the augmented schedule; success is False if
            any task is still short of its requirement
        """
        if not unassigned_tasks:
            return FallbackResult(schedule=list(initial_schedule))

        schedule = list(initial_schedule)
        errors: List[str] = []
        iteration_count = 0

        for task in unassigned_tasks:
            batch = self.batches_by_id.get(task.batch_id)
            if batch is None:
                errors.append(f"Batch {task.batch_id} for task {task.task_id} not found")
                continue

            qualified_teachers = [t for t in self.teachers if task.subject_id in t.subjects]
            suitable_classrooms = [c for c in self.classrooms if c.capacity >= batch.student_count]

            slot_usage = build_slot_usage(schedule)
            daily_counts = Counter((a.teacher_id, a.day) for a in schedule)
            weekly_counts = Counter(a.teacher_id for a in schedule)

            periods_needed = task.periods_needed
            assigned = 0

            for slot_index in range(TOTAL_SLOTS):
                if assigned >= periods_needed:
                    break

                if iteration_count >= self.max_iterations:
                    errors.append(
                        f"Could not assign {periods_needed - assigned} periods for task "
                        f"{task.task_id} within iteration limit"
                    )
                    break
                iteration_count += 1

                usage = slot_usage[slot_index]
                if task.batch_id in usage.batches:
                    continue

                day, period = index_to_slot(slot_index)

                teacher = self._find_teacher(qualified_teachers, usage, day, period, daily_counts, weekly_counts)
                if teacher is None:
                    continue

                classroom = self._find_classroom(suitable_classrooms, usage, day, period)
                if classroom is None:
                    continue

                assignment = Assignment(
                    day=day,
                    period=period,
                    teacher_id=teacher.teacher_id,
                    subject_id=task.subject_id,
                    classroom_id=classroom.classroom_id,
                    batch_id=task.batch_id
                )
                schedule.append(assignment)
                usage.occupy(assignment)
                daily_counts[(teacher.teacher_id, day)] += 1
                weekly_counts[teacher.teacher_id] += 1
                assigned += 1

            if assigned < periods_needed:
                logger.warning(f"Fallback could not complete task {task.task_id}: {assigned}/{periods_needed}")
                errors.append(
                    f"Could not assign all {periods_needed} periods for task {task.task_id}. "
                    f"Assigned: {assigned}"
                )

        logger.info(
            f"Fallback pass: {len(unassigned_tasks)} tasks, {iteration_count} steps, {len(errors)} errors"
        )
        return FallbackResult(schedule=schedule, success=not errors, errors=errors)

    def _find_teacher(
        self,
        qualified_teachers: List[Teacher],
        usage: SlotUsage,
        day: int,
        period: int,
        daily_counts: Counter,
        weekly_counts: Counter
    ) -> Optional[Teacher]:
        for teacher in qualified_teachers:
            if teacher.teacher_id in usage.teachers:
                continue
            if is_slot_listed(teacher.unavailable_slots, day, period):
                continue
            if daily_counts[(teacher.teacher_id, day)] >= teacher.max_periods_per_day:
                continue
            if weekly_counts[teacher.teacher_id] >= teacher.max_periods_per_week:
                continue
            return teacher
        return None

    def _find_classroom(
        self,
        suitable_classrooms: List[Classroom],
        usage: SlotUsage,
        day: int,
        period: int
    ) -> Optional[Classroom]:
        for classroom in suitable_classrooms:
            if classroom.classroom_id in usage.classrooms:
                continue
            if is_slot_listed(classroom.unavailable_slots, day, period):
                continue
            return classroom
        return None
