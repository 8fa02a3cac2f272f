from pydantic import BaseModel, Field, field_validator
from typing import List, Dict, Optional, Literal
from datetime import datetime


# ===========================
# Time Slot Models
# ===========================

class TimeSlot(BaseModel):
    """One (day, period) cell of the weekly grid"""
    day: int = Field(ge=1, le=6)     # 1=Mon ... 6=Sat
    period: int = Field(ge=1, le=6)


# ===========================
# Entity Models
# ===========================

class Teacher(BaseModel):
    teacher_id: str
    name: Optional[str] = ""
    subjects: List[str] = []                        # subject ids the teacher is qualified for
    max_periods_per_day: int = Field(default=6, ge=1, le=6)
    max_periods_per_week: int = Field(default=30, ge=1, le=36)
    unavailable_slots: List[TimeSlot] = []          # hard constraint
    preferred_slots: List[TimeSlot] = []            # soft constraint


class Subject(BaseModel):
    subject_id: str
    name: str
    code: Optional[str] = ""


class Classroom(BaseModel):
    classroom_id: str
    name: Optional[str] = ""
    capacity: int = Field(ge=1, le=200)
    type: Literal["lecture", "lab", "seminar", "auditorium"]
    unavailable_slots: List[TimeSlot] = []


class Batch(BaseModel):
    batch_id: str
    name: Optional[str] = ""
    student_count: int = Field(ge=1)
    subject_periods: Dict[str, int] = {}            # subject_id -> periods per week

    @field_validator("subject_periods")
    @classmethod
    def periods_not_negative(cls, value: Dict[str, int]) -> Dict[str, int]:
        for subject_id, periods in value.items():
            if periods < 0:
                raise ValueError(f"Periods for subject {subject_id} must not be negative")
        return value

    @property
    def display_name(self) -> str:
        return self.name or self.batch_id


# ===========================
# Engine Records
# ===========================

class Task(BaseModel):
    """One batch's period requirement for one subject"""
    task_id: str
    batch_id: str
    subject_id: str
    periods_needed: int = Field(gt=0)

    class Config:
        frozen = True


class Assignment(BaseModel):
    """One scheduled period"""
    day: int
    period: int
    teacher_id: str
    subject_id: str
    classroom_id: str
    batch_id: str

    class Config:
        frozen = True


class AlgorithmPhases(BaseModel):
    """Per-phase timings in milliseconds"""
    preprocessing: float = 0.0
    greedy: float = 0.0
    backtracking: float = 0.0
    optimization: float = 0.0


class TimetableMetadata(BaseModel):
    execution_time_ms: float = 0.0
    total_tasks: int = 0
    conflicts_resolved: int = 0     # tasks handed to the fallback pass
    algorithm_phases: AlgorithmPhases = AlgorithmPhases()


class TimetableResult(BaseModel):
    """Outcome of one generation run"""
    success: bool
    schedule: Optional[List[Assignment]] = None
    metadata: TimetableMetadata = TimetableMetadata()
    errors: List[str] = []


# ===========================
# Request Schema
# ===========================

class GenerateTimetableRequest(BaseModel):
    """Timetable generation request with the entity snapshot to schedule from"""
    name: str
    batch_ids: List[str] = Field(min_length=1)
    teachers: List[Teacher] = []
    subjects: List[Subject] = []
    classrooms: List[Classroom] = []
    batches: List[Batch] = []

    @field_validator("name")
    @classmethod
    def name_min_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Timetable name must be at least 2 characters")
        return value


# ===========================
# Response Schema
# ===========================

class GeneratedTimetable(BaseModel):
    """Generated timetable, ready to be persisted by the caller"""
    name: str
    generated_at: datetime
    status: Literal["draft", "active", "archived"] = "draft"
    schedule: List[Assignment]
    metadata: TimetableMetadata


class GenerateTimetableResponse(BaseModel):
    success: bool = True
    data: GeneratedTimetable


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[List[str]] = None
