from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from app.core.constants import ExamTypeEnum
from app.schemas.question import Question

class ExamBase(BaseModel):
    title: str
    description: Optional[str] = None
    subject: str
    year_level: int = Field(ge=1, le=12)
    exam_type: ExamTypeEnum = ExamTypeEnum.NAPLAN
    duration_minutes: Optional[int] = None
    total_questions: int = 0
    is_free: bool = False
    is_active: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "title": "NAPLAN Year 5 Numeracy 2016",
                "description": "40 questions covering number, measurement, geometry, statistics and probability.",
                "subject": "Mathematics",
                "year_level": 5,
                "exam_type": "NAPLAN",
                "duration_minutes": 50,
                "total_questions": 40,
                "is_free": True,
                "is_active": True
            }
        }

class ExamCreate(ExamBase):
    id: Optional[str] = None

class Exam(ExamBase):
    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ExamPaper(BaseModel):
    """An exam together with its ordered question set."""
    exam: Exam
    questions: List[Question]

    @property
    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]

    @property
    def total_points(self) -> int:
        return sum(q.points or 1 for q in self.questions)
