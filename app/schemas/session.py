from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from app.core.constants import (
    ErrorCodeEnum, IntegrityEventEnum, SaveStatusEnum, SessionStateEnum
)
from app.schemas.exam import Exam
from app.schemas.exam_attempt import CompletedAttempt
from app.schemas.question import QuestionPublic

class AnswerIn(BaseModel):
    question_id: str
    answer: str

class NavigateIn(BaseModel):
    index: int

class IntegrityEventIn(BaseModel):
    event_type: IntegrityEventEnum

class MutationResult(BaseModel):
    applied: bool
    reason: Optional[ErrorCodeEnum] = None

class SaveStatusReport(BaseModel):
    status: SaveStatusEnum = SaveStatusEnum.SAVED
    pending: bool = False
    last_saved_at: Optional[datetime] = None
    last_error: Optional[str] = None
    write_count: int = 0

class SessionView(BaseModel):
    attempt_id: str
    exam: Exam
    state: SessionStateEnum
    current_index: int
    total_questions: int
    current_question: Optional[QuestionPublic] = None
    current_hint: Optional[str] = None
    questions: List[QuestionPublic] = Field(default_factory=list)
    answers: Dict[str, str] = Field(default_factory=dict)
    flagged: List[str] = Field(default_factory=list)
    answered_count: int = 0
    progress_percent: int = 0
    remaining_seconds: int
    duration_seconds: int
    save: SaveStatusReport
    integrity_events: Dict[str, int] = Field(default_factory=dict)
    result: Optional[CompletedAttempt] = None

class SessionAction(BaseModel):
    outcome: MutationResult
    session: SessionView
