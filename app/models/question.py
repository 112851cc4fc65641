import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB
from app.core.database import Base
from app.core.constants import QuestionTypeEnum, DifficultyEnum

class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (UniqueConstraint("exam_id", "question_number", name="uq_questions_exam_number"),)

    id = Column(String(64), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    exam_id = Column(String(64), ForeignKey("exams.id"), index=True, nullable=False)
    question_number = Column(Integer, nullable=False)
    question_type = Column(Enum(QuestionTypeEnum), nullable=False)
    question_text = Column(String, nullable=False)
    options = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True) # Ordered choice strings, multiple choice only
    correct_answer = Column(String, nullable=False) # Letter code or exact answer text
    points = Column(Integer, nullable=False, default=1)
    hint = Column(String, nullable=True)
    explanation = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    topic = Column(String, nullable=True)
    difficulty = Column(Enum(DifficultyEnum), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    exam = relationship("Exam", back_populates="questions")
