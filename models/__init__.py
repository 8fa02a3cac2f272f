"""
Data models and Pydantic schemas for the timetable generation API.
"""
from .schemas import (
    TimeSlot,
    Teacher,
    Subject,
    Classroom,
    Batch,
    Task,
    Assignment,
    AlgorithmPhases,
    TimetableMetadata,
    TimetableResult,
    GenerateTimetableRequest,
    GeneratedTimetable,
    GenerateTimetableResponse,
    ErrorResponse
)

__all__ = [
    "TimeSlot",
    "Teacher",
    "Subject",
    "Classroom",
    "Batch",
    "Task",
    "Assignment",
    "AlgorithmPhases",
    "TimetableMetadata",
    "TimetableResult",
    "GenerateTimetableRequest",
    "GeneratedTimetable",
    "GenerateTimetableResponse",
    "ErrorResponse"
]
