from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List

from app.core.constants import QuestionTypeEnum, DifficultyEnum

class QuestionBase(BaseModel):
    exam_id: str
    question_number: int
    question_type: QuestionTypeEnum
    question_text: str
    options: Optional[List[str]] = None
    points: int = Field(default=1, ge=1)
    hint: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator('options', mode='before')
    @classmethod
    def normalize_options(cls, v):
        if v is None:
            return None
        options = []
        for option in v:
            if isinstance(option, dict):
                option = option.get("text") or option.get("value") or ""
            options.append(str(option))
        return options

class QuestionCreate(QuestionBase):
    correct_answer: str
    explanation: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[DifficultyEnum] = None

class QuestionPublic(QuestionBase):
    """Question as shown while an attempt is running; the canonical answer is withheld."""
    id: str

    model_config = ConfigDict(from_attributes=True)

class Question(QuestionCreate):
    id: str

    model_config = ConfigDict(from_attributes=True)
