from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import datetime

from app.core.constants import SubmitReasonEnum

class AttemptBase(BaseModel):
    id: str
    exam_id: str
    user_id: str
    started_at: datetime
    answers: Dict[str, str] = Field(default_factory=dict)
    flagged: List[str] = Field(default_factory=list)
    integrity_events: Dict[str, int] = Field(default_factory=dict)
    total_points: Optional[int] = None

    model_config = ConfigDict(frozen=True)

class InProgressAttempt(AttemptBase):
    status: Literal["in_progress"] = "in_progress"

class AbandonedAttempt(AttemptBase):
    status: Literal["abandoned"] = "abandoned"

class CompletedAttempt(AttemptBase):
    status: Literal["completed"] = "completed"
    completed_at: datetime
    score: int
    total_points: int
    percentage: int = Field(ge=0, le=100)
    time_spent_seconds: int = Field(ge=0)
    submit_reason: Optional[SubmitReasonEnum] = None

AttemptRecord = Annotated[
    Union[InProgressAttempt, CompletedAttempt, AbandonedAttempt],
    Field(discriminator="status"),
]

attempt_record_adapter = TypeAdapter(AttemptRecord)

class AttemptCreate(BaseModel):
    exam_id: str
    user_id: str
    started_at: datetime
    total_points: int
