import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import ExamTypeEnum

class Exam(Base):
    __tablename__ = "exams"

    id = Column(String(64), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, index=True, nullable=False)
    description = Column(String, nullable=True)
    subject = Column(String, index=True, nullable=False)
    year_level = Column(Integer, index=True, nullable=False)
    exam_type = Column(Enum(ExamTypeEnum), nullable=False, default=ExamTypeEnum.NAPLAN)
    duration_minutes = Column(Integer, nullable=True)
    total_questions = Column(Integer, nullable=False, default=0)
    is_free = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    questions = relationship(
        "Question",
        back_populates="exam",
        cascade="all, delete-orphan",
        order_by="Question.question_number"
    )
    attempts = relationship("ExamAttempt", back_populates="exam", cascade="all, delete-orphan")
