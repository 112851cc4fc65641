import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB
from app.core.database import Base
from app.core.constants import ExamAttemptStatusEnum, SubmitReasonEnum

class ExamAttempt(Base):
    __tablename__ = "exam_attempts"

    id = Column(String(64), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    exam_id = Column(String(64), ForeignKey("exams.id"), index=True, nullable=False)
    user_id = Column(String(64), index=True, nullable=False)
    status = Column(Enum(ExamAttemptStatusEnum), nullable=False, default=ExamAttemptStatusEnum.IN_PROGRESS)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    answers = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    flagged = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    integrity_events = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    score = Column(Integer, nullable=True)
    total_points = Column(Integer, nullable=True)
    percentage = Column(Integer, nullable=True)
    time_spent_seconds = Column(Integer, nullable=True)
    submit_reason = Column(Enum(SubmitReasonEnum), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    exam = relationship("Exam", back_populates="attempts")
