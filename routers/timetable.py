from datetime import datetime, timezone
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from models.schemas import (
    GenerateTimetableRequest, GenerateTimetableResponse, GeneratedTimetable, ErrorResponse
)
from service.repository import InMemoryRepository
from service.scheduler import TimetableScheduler
from config import settings

# Create a router instance
router = APIRouter()


@router.post(
    "/timetables/generate",
    response_model=GenerateTimetableResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}}
)
def generate_timetable(request: GenerateTimetableRequest):
    """
    Generate a draft timetable for the selected batches.
    
    The request carries the teacher, subject, classroom and batch snapshot
    to schedule from. The generated timetable is returned, not stored.
    """
    with InMemoryRepository(
        teachers=request.teachers,
        subjects=request.subjects,
        classrooms=request.classrooms,
        batches=request.batches
    ) as repository:
        missing = repository.missing_batch_ids(request.batch_ids)
        if missing:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=ErrorResponse(error=f"Batch with ID {missing[0]} does not exist").model_dump(exclude_none=True)
            )
        
        scheduler = TimetableScheduler(
            repository,
            fallback_max_iterations=settings.fallback_max_iterations,
            optimizer_max_iterations=settings.optimizer_max_iterations,
            random_seed=settings.optimizer_random_seed
        )
        result = scheduler.generate_timetable(request.batch_ids)
    
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error="Timetable generation failed", details=result.errors).model_dump(exclude_none=True)
        )
    
    return GenerateTimetableResponse(
        data=GeneratedTimetable(
            name=request.name,
            generated_at=datetime.now(timezone.utc),
            schedule=result.schedule,
            metadata=result.metadata
        )
    )
