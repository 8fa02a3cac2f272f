"""
Phase 1: feasibility analysis and task preparation.

Builds scheduling tasks from each batch's subject-period requirements,
precomputes which slots each task could ever use, scores tasks by how
constrained they are, and reports structural infeasibility before any
allocation is attempted.
"""
from dataclasses import dataclass, field
from typing import Dict, List
from models.schemas import Teacher, Subject, Classroom, Batch, Task
from service.constraint_graph import ConstraintGraph
from service.priority_queue import PriorityQueue
from service.repository import EntityRepository
from service.slots import (
    DAYS_PER_WEEK, PERIODS_PER_DAY, TOTAL_SLOTS, slot_to_index, is_slot_listed
)
import logging

logger = logging.getLogger(__name__)


@dataclass
class PreprocessingResult:
    priority_queue: PriorityQueue
    constraint_graph: ConstraintGraph
    validity_matrix: Dict[str, List[bool]]    # task_id -> 36 slot validity flags
    teachers: List[Teacher] = field(default_factory=list)
    subjects: List[Subject] = field(default_factory=list)
    classrooms: List[Classroom] = field(default_factory=list)
    batches: List[Batch] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class Preprocessor:
    """
    Prepares the inputs of the allocation phases.

    Every structural problem found is collected; the caller must not run
    allocation when PreprocessingResult.errors is non-empty.
    """

    def __init__(self, repository: EntityRepository):
        self.repository = repository

    def analyze(self, batch_ids: List[str]) -> PreprocessingResult:
        """
        Analyze the requested batches.

        Args:
            batch_ids: Ids of the batches to schedule

        Returns:
            PreprocessingResult with queue, graph, validity matrix, loaded
            entities and the list of feasibility errors
        """
        errors: List[str] = []
        constraint_graph = ConstraintGraph()
        priority_queue: PriorityQueue[Task] = PriorityQueue()

        # Step 1: Load entities
        batches = self.repository.get_batches(batch_ids)
        teachers = self.repository.get_teachers()
        subjects = self.repository.get_subjects()
        classrooms = self.repository.get_classrooms()

        if not batches:
            errors.append("No batches found for the provided IDs")
            return PreprocessingResult(
                priority_queue=priority_queue,
                constraint_graph=constraint_graph,
                validity_matrix={},
                errors=errors
            )

        subject_names = {s.subject_id: s.name for s in subjects}
        batches_by_id = {b.batch_id: b for b in batches}

        # Step 2: Index teachers by the subjects they can teach
        subject_teachers = self._build_subject_teacher_map(teachers)

        # Step 3: Create one task per batch-subject requirement
        tasks: List[Task] = []
        largest_capacity = max((c.capacity for c in classrooms), default=0)

        for batch in batches:
            for subject_id, periods_needed in batch.subject_periods.items():
                if periods_needed <= 0:
                    continue

                if not subject_teachers.get(subject_id):
                    errors.append(
                        f"Subject {subject_names.get(subject_id) or subject_id} has no qualified teachers"
                    )
                    continue

                if not self._suitable_classrooms(classrooms, batch):
                    errors.append(
                        f"No classroom can accommodate Batch {batch.display_name} "
                        f"({batch.student_count} students). Largest available capacity: {largest_capacity}"
                    )
                    continue

                task = Task(
                    task_id=f"{batch.batch_id}-{subject_id}",
                    batch_id=batch.batch_id,
                    subject_id=subject_id,
                    periods_needed=periods_needed
                )
                tasks.append(task)
                constraint_graph.add_node(task)

        # Step 4: Tasks of the same batch conflict with each other
        for i, task in enumerate(tasks):
            for other in tasks[i + 1:]:
                if task.batch_id == other.batch_id:
                    constraint_graph.add_edge(task.task_id, other.task_id)

        # Step 5: Precompute slot validity
        validity_matrix: Dict[str, List[bool]] = {}
        for task in tasks:
            validity_matrix[task.task_id] = self._compute_validity(
                subject_teachers[task.subject_id],
                self._suitable_classrooms(classrooms, batches_by_id[task.batch_id])
            )

        # Step 6: Score and enqueue
        for task in tasks:
            priority = self._priority_score(
                constraint_graph.get_constraint_count(task.task_id),
                subject_teachers[task.subject_id],
                validity_matrix[task.task_id]
            )
            priority_queue.enqueue(task, priority)

        # Step 7: Aggregate capacity checks
        errors.extend(self._validate_capacity(batches, subject_teachers, subject_names))

        logger.info(
            f"Preprocessing: {len(batches)} batches, {len(tasks)} tasks, {len(errors)} errors"
        )

        return PreprocessingResult(
            priority_queue=priority_queue,
            constraint_graph=constraint_graph,
            validity_matrix=validity_matrix,
            teachers=teachers,
            subjects=subjects,
            classrooms=classrooms,
            batches=batches,
            errors=errors
        )

    def _build_subject_teacher_map(self, teachers: List[Teacher]) -> Dict[str, List[Teacher]]:
        """Build mapping from subject_id to the teachers qualified for it."""
        subject_teachers: Dict[str, List[Teacher]] = {}
        for teacher in teachers:
            for subject_id in teacher.subjects:
                subject_teachers.setdefault(subject_id, []).append(teacher)
        return subject_teachers

    def _suitable_classrooms(self, classrooms: List[Classroom], batch: Batch) -> List[Classroom]:
        return [c for c in classrooms if c.capacity >= batch.student_count]

    def _compute_validity(
        self,
        qualified_teachers: List[Teacher],
        suitable_classrooms: List[Classroom]
    ) -> List[bool]:
        """
        A slot is valid when at least one qualified teacher and at least one
        suitable classroom are not listed as unavailable there.
        """
        validity = [True] * TOTAL_SLOTS

        for day in range(1, DAYS_PER_WEEK + 1):
            for period in range(1, PERIODS_PER_DAY + 1):
                has_teacher = any(
                    not is_slot_listed(t.unavailable_slots, day, period)
                    for t in qualified_teachers
                )
                has_classroom = any(
                    not is_slot_listed(c.unavailable_slots, day, period)
                    for c in suitable_classrooms
                )
                if not has_teacher or not has_classroom:
                    validity[slot_to_index(day, period)] = False

        return validity

    def _priority_score(
        self,
        constraint_count: int,
        qualified_teachers: List[Teacher],
        validity: List[bool]
    ) -> float:
        """Higher scores are scheduled first: more conflicts, more demand, fewer options."""
        available_slots = sum(validity)
        avg_weekly_capacity = (
            sum(t.max_periods_per_week for t in qualified_teachers)
            / max(len(qualified_teachers), 1)
        )
        teacher_load = avg_weekly_capacity / TOTAL_SLOTS

        return constraint_count * 10 + teacher_load * 5 - available_slots * 0.5

    def _validate_capacity(
        self,
        batches: List[Batch],
        subject_teachers: Dict[str, List[Teacher]],
        subject_names: Dict[str, str]
    ) -> List[str]:
        """Check batch totals against the grid and subject demand against teacher capacity."""
        errors = []

        for batch in batches:
            total_periods = sum(batch.subject_periods.values())
            if total_periods > TOTAL_SLOTS:
                errors.append(
                    f"Batch {batch.display_name} requires {total_periods} periods, "
                    f"which exceeds the maximum of {TOTAL_SLOTS}"
                )

        for subject_id, teacher_list in subject_teachers.items():
            total_required = sum(b.subject_periods.get(subject_id, 0) for b in batches)
            total_capacity = sum(t.max_periods_per_week for t in teacher_list)

            if total_required > total_capacity:
                errors.append(
                    f"Teachers cannot cover required {total_required} periods for "
                    f"{subject_names.get(subject_id) or subject_id} (total capacity: {total_capacity})"
                )

        return errors
