"""
Phase 2: priority-ordered greedy allocation.

Tasks are taken from the priority queue most-constrained first; each one
is placed into its best-scoring free slots. Whatever cannot be placed is
returned as residual tasks for the fallback phase.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from models.schemas import Teacher, Classroom, Batch, Task, Assignment
from service.priority_queue import PriorityQueue
from service.slots import (
    DAYS_PER_WEEK, TOTAL_SLOTS, SlotUsage, empty_slot_usage, index_to_slot, is_slot_listed
)
import logging

logger = logging.getLogger(__name__)

BALANCE_WEIGHT = 10
PREFERRED_SLOT_BONUS = 10
GAP_PENALTY = 20
LAB_MATCH_BONUS = 5


@dataclass
class GreedyScheduleResult:
    schedule: List[Assignment] = field(default_factory=list)
    unassigned: List[Task] = field(default_factory=list)


class GreedyAllocator:
    """
    Heuristic slot-by-slot allocator.

    Holds its own slot usage, per-teacher daily and weekly load counters
    and per-batch occupied slots; a new instance is needed per run.
    """

    def __init__(self, teachers: List[Teacher], classrooms: List[Classroom], batches: List[Batch]):
        self.teachers = teachers
        self.classrooms = classrooms
        self.batches_by_id: Dict[str, Batch] = {b.batch_id: b for b in batches}

        self.slot_usage: List[SlotUsage] = empty_slot_usage()
        self.teacher_daily_load: Dict[str, List[int]] = {
            t.teacher_id: [0] * DAYS_PER_WEEK for t in teachers
        }
        self.teacher_weekly_load: Dict[str, int] = {t.teacher_id: 0 for t in teachers}
        self.batch_slots: Dict[str, set] = {batch_id: set() for batch_id in self.batches_by_id}

    def allocate(
        self,
        priority_queue: PriorityQueue,
        validity_matrix: Dict[str, List[bool]]
    ) -> GreedyScheduleResult:
        """
        Drain the priority queue, placing as many periods as possible.

        Args:
            priority_queue: Tasks ordered by priority score
            validity_matrix: task_id -> 36 validity flags; entries of used
                slots are switched off as assignments are made

        Returns:
            GreedyScheduleResult with the schedule and the residual tasks
        """
        result = GreedyScheduleResult()

        while not priority_queue.is_empty():
            task = priority_queue.dequeue()
            placed = self._allocate_task(task, validity_matrix, result.schedule)

            if placed < task.periods_needed:
                remaining = task.periods_needed - placed
                logger.debug(f"Task {task.task_id}: {remaining} of {task.periods_needed} periods left unassigned")
                result.unassigned.append(task.model_copy(update={"periods_needed": remaining}))

        logger.info(
            f"Greedy allocation: {len(result.schedule)} periods placed, "
            f"{len(result.unassigned)} tasks incomplete"
        )
        return result

    def _allocate_task(
        self,
        task: Task,
        validity_matrix: Dict[str, List[bool]],
        schedule: List[Assignment]
    ) -> int:
        batch = self.batches_by_id.get(task.batch_id)
        if batch is None:
            logger.warning(f"Batch {task.batch_id} for task {task.task_id} not found")
            return 0

        qualified_teachers = [t for t in self.teachers if task.subject_id in t.subjects]
        suitable_classrooms = [c for c in self.classrooms if c.capacity >= batch.student_count]
        validity = validity_matrix.get(task.task_id, [True] * TOTAL_SLOTS)

        # Score every candidate slot
        slot_scores: List[Tuple[int, float]] = []
        for slot_index in range(TOTAL_SLOTS):
            if not validity[slot_index]:
                continue

            candidate = self._find_resources(task, slot_index, qualified_teachers, suitable_classrooms)
            if candidate is None:
                continue

            teacher, classroom = candidate
            slot_scores.append((slot_index, self._score_slot(task, slot_index, teacher, classroom)))

        slot_scores.sort(key=lambda item: item[1], reverse=True)

        # Assign in score order, re-checking since earlier picks consume resources
        placed = 0
        for slot_index, _ in slot_scores:
            if placed >= task.periods_needed:
                break

            candidate = self._find_resources(task, slot_index, qualified_teachers, suitable_classrooms)
            if candidate is None:
                continue

            teacher, classroom = candidate
            day, period = index_to_slot(slot_index)
            assignment = Assignment(
                day=day,
                period=period,
                teacher_id=teacher.teacher_id,
                subject_id=task.subject_id,
                classroom_id=classroom.classroom_id,
                batch_id=task.batch_id
            )
            schedule.append(assignment)
            self._record(assignment, slot_index)
            validity[slot_index] = False
            placed += 1

        return placed

    def _find_resources(
        self,
        task: Task,
        slot_index: int,
        qualified_teachers: List[Teacher],
        suitable_classrooms: List[Classroom]
    ) -> Optional[Tuple[Teacher, Classroom]]:
        """Return the first free teacher and classroom for the slot, or None."""
        usage = self.slot_usage[slot_index]
        if task.batch_id in usage.batches:
            return None

        day, period = index_to_slot(slot_index)

        teacher = next(
            (t for t in qualified_teachers if self._teacher_is_free(t, usage, day, period)),
            None
        )
        if teacher is None:
            return None

        classroom = next(
            (
                c for c in suitable_classrooms
                if c.classroom_id not in usage.classrooms
                and not is_slot_listed(c.unavailable_slots, day, period)
            ),
            None
        )
        if classroom is None:
            return None

        return teacher, classroom

    def _teacher_is_free(self, teacher: Teacher, usage: SlotUsage, day: int, period: int) -> bool:
        if teacher.teacher_id in usage.teachers:
            return False
        if is_slot_listed(teacher.unavailable_slots, day, period):
            return False
        if self.teacher_daily_load[teacher.teacher_id][day - 1] >= teacher.max_periods_per_day:
            return False
        if self.teacher_weekly_load[teacher.teacher_id] >= teacher.max_periods_per_week:
            return False
        return True

    def _score_slot(self, task: Task, slot_index: int, teacher: Teacher, classroom: Classroom) -> float:
        day, period = index_to_slot(slot_index)
        score = 0.0

        # Balance: prefer days where the teacher is below their average load
        daily_loads = self.teacher_daily_load[teacher.teacher_id]
        avg_daily_load = sum(daily_loads) / DAYS_PER_WEEK
        score += (avg_daily_load - daily_loads[day - 1]) * BALANCE_WEIGHT

        if is_slot_listed(teacher.preferred_slots, day, period):
            score += PREFERRED_SLOT_BONUS

        # Gap: penalise slots not adjacent to the batch's block for that day
        day_slots = [s for s in self.batch_slots[task.batch_id] if index_to_slot(s)[0] == day]
        if day_slots:
            if slot_index < min(day_slots) - 1 or slot_index > max(day_slots) + 1:
                score -= GAP_PENALTY

        if classroom.type == "lab" and "LAB" in task.subject_id:
            score += LAB_MATCH_BONUS

        return score

    def _record(self, assignment: Assignment, slot_index: int):
        self.slot_usage[slot_index].occupy(assignment)
        self.teacher_daily_load[assignment.teacher_id][assignment.day - 1] += 1
        self.teacher_weekly_load[assignment.teacher_id] += 1
        self.batch_slots[assignment.batch_id].add(slot_index)
