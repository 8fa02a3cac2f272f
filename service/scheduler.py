"""
Four-phase timetable generation engine.

Preprocessing -> greedy allocation -> fallback pass (only when needed)
-> local-search optimization.
"""
from typing import List
from models.schemas import TimetableResult, TimetableMetadata, AlgorithmPhases
from service.repository import EntityRepository
from service.preprocessor import Preprocessor
from service.greedy_allocator import GreedyAllocator
from service.fallback_resolver import FallbackResolver, MAX_FALLBACK_ITERATIONS
from service.optimizer import ScheduleOptimizer, MAX_OPTIMIZATION_ITERATIONS, DEFAULT_RANDOM_SEED
import random
import time
import logging

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error during timetable generation"


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class TimetableScheduler:
    """
    Runs the scheduling phases in order and collects timing metadata.

    Each call to generate_timetable works on its own snapshot read from
    the repository and its own working structures.
    """

    def __init__(
        self,
        repository: EntityRepository,
        fallback_max_iterations: int = MAX_FALLBACK_ITERATIONS,
        optimizer_max_iterations: int = MAX_OPTIMIZATION_ITERATIONS,
        random_seed: int = DEFAULT_RANDOM_SEED
    ):
        """
        Initialize the scheduler.

        Args:
            repository: Open entity repository to read the snapshot from
            fallback_max_iterations: Global step budget of the fallback pass
            optimizer_max_iterations: Number of swap attempts of the optimizer
            random_seed: Seed of the optimizer's random source
        """
        self.repository = repository
        self.fallback_max_iterations = fallback_max_iterations
        self.optimizer_max_iterations = optimizer_max_iterations
        self.random_seed = random_seed

    def generate_timetable(self, batch_ids: List[str]) -> TimetableResult:
        """
        Main entry point to generate a timetable.

        Args:
            batch_ids: Ids of the batches to schedule together

        Returns:
            TimetableResult with the schedule on success, or the diagnostic
            errors and a null schedule on failure
        """
        start_time = time.perf_counter()
        phases = AlgorithmPhases()
        total_tasks = 0

        try:
            # Phase 1: Preprocessing
            phase_start = time.perf_counter()
            preprocessing = Preprocessor(self.repository).analyze(batch_ids)
            phases.preprocessing = _elapsed_ms(phase_start)

            if preprocessing.errors:
                logger.info(f"Preprocessing rejected the request with {len(preprocessing.errors)} errors")
                return self._failure(start_time, phases, 0, preprocessing.errors)

            total_tasks = len(preprocessing.constraint_graph.get_all_tasks())

            # Phase 2: Greedy allocation
            phase_start = time.perf_counter()
            allocator = GreedyAllocator(
                preprocessing.teachers, preprocessing.classrooms, preprocessing.batches
            )
            greedy = allocator.allocate(preprocessing.priority_queue, preprocessing.validity_matrix)
            phases.greedy = _elapsed_ms(phase_start)

            schedule = greedy.schedule

            # Phase 3: Fallback pass for leftovers
            phase_start = time.perf_counter()
            if greedy.unassigned:
                resolver = FallbackResolver(
                    preprocessing.teachers,
                    preprocessing.classrooms,
                    preprocessing.batches,
                    max_iterations=self.fallback_max_iterations
                )
                fallback = resolver.resolve(greedy.schedule, greedy.unassigned)
                phases.backtracking = _elapsed_ms(phase_start)

                if not fallback.success:
                    logger.info(f"Fallback pass failed with {len(fallback.errors)} errors")
                    return self._failure(start_time, phases, total_tasks, fallback.errors)

                schedule = fallback.schedule
            else:
                phases.backtracking = _elapsed_ms(phase_start)

            # Phase 4: Optimization
            phase_start = time.perf_counter()
            optimizer = ScheduleOptimizer(
                preprocessing.teachers,
                preprocessing.batches,
                classrooms=preprocessing.classrooms,
                max_iterations=self.optimizer_max_iterations,
                rng=random.Random(self.random_seed)
            )
            schedule = optimizer.optimize(schedule)
            phases.optimization = _elapsed_ms(phase_start)

            metadata = TimetableMetadata(
                execution_time_ms=_elapsed_ms(start_time),
                total_tasks=total_tasks,
                conflicts_resolved=len(greedy.unassigned),
                algorithm_phases=phases
            )
            logger.info(
                f"Generated timetable: {len(schedule)} periods for {total_tasks} tasks "
                f"in {metadata.execution_time_ms}ms"
            )
            return TimetableResult(success=True, schedule=schedule, metadata=metadata)

        except Exception as e:
            logger.error(f"Timetable generation error: {str(e)}", exc_info=True)
            return self._failure(start_time, phases, total_tasks, [INTERNAL_ERROR_MESSAGE])

    def _failure(
        self,
        start_time: float,
        phases: AlgorithmPhases,
        total_tasks: int,
        errors: List[str]
    ) -> TimetableResult:
        """Create result for a failed run; the partial schedule is discarded."""
        return TimetableResult(
            success=False,
            schedule=None,
            metadata=TimetableMetadata(
                execution_time_ms=_elapsed_ms(start_time),
                total_tasks=total_tasks,
                conflicts_resolved=0,
                algorithm_phases=phases
            ),
            errors=errors
        )
