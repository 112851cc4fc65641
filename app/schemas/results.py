from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from app.core.constants import AnswerStatusEnum, DifficultyEnum, ExamAttemptStatusEnum
from app.schemas.exam import Exam
from app.schemas.exam_attempt import CompletedAttempt

class ScoreResult(BaseModel):
    earned: int
    total: int
    percentage: int
    correct_count: int = 0
    incorrect_count: int = 0
    unanswered_count: int = 0

class TopicPerformance(BaseModel):
    topic: str
    total: int = 0
    answered: int = 0
    correct: int = 0

    @property
    def ratio(self) -> float:
        return self.correct / self.total if self.total else 0.0

class TopicSummary(BaseModel):
    topic: str
    total: int
    answered: int
    correct: int
    percentage: int

class DifficultyPerformance(BaseModel):
    difficulty: DifficultyEnum
    total: int
    correct: int
    percentage: int

class TimeBreakdown(BaseModel):
    time_spent_seconds: int
    allotted_seconds: int
    percent_of_time_used: int
    avg_seconds_per_question: float
    avg_seconds_per_answered: Optional[float] = None

class NationalComparison(BaseModel):
    year_level: int
    national_average: int
    percentage: int
    delta: int

class GradeInfo(BaseModel):
    grade: str
    message: str

class QuestionReview(BaseModel):
    question_id: str
    question_number: int
    question_text: str
    status: AnswerStatusEnum
    user_answer: Optional[str] = None
    user_answer_text: Optional[str] = None
    correct_answer_text: str
    explanation: Optional[str] = None
    points: int
    flagged: bool = False

class AttemptResults(BaseModel):
    attempt: CompletedAttempt
    exam: Exam
    score: ScoreResult
    grade: GradeInfo
    topics: List[TopicSummary]
    strong_topics: List[str]
    weak_topics: List[str]
    difficulty: List[DifficultyPerformance]
    time: TimeBreakdown
    national: NationalComparison
    improvement: int
    review: List[QuestionReview]
    integrity_events: Dict[str, int] = Field(default_factory=dict)

class DashboardStats(BaseModel):
    total_exams_taken: int = 0
    completed_exams: int = 0
    average_score: int = 0
    best_score: int = 0
    total_time_spent: int = 0
    improvement_percentage: int = 0

class AttemptHistoryItem(BaseModel):
    id: str
    status: ExamAttemptStatusEnum
    exam: Optional[Exam] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    score: Optional[int] = None
    total_points: Optional[int] = None
    percentage: Optional[int] = None
    time_spent_seconds: Optional[int] = None

class Dashboard(BaseModel):
    stats: DashboardStats
    recent_attempts: List[AttemptHistoryItem]
    strong_topics: List[str]
    weak_topics: List[str]
