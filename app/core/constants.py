from enum import Enum


class ExamTypeEnum(str, Enum):
    NAPLAN = "NAPLAN"
    ICAS = "ICAS"

class QuestionTypeEnum(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"

class DifficultyEnum(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class ExamAttemptStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

class SessionStateEnum(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ERROR = "error"

class SubmitReasonEnum(str, Enum):
    USER = "user"
    TIMEOUT = "timeout"

class SaveStatusEnum(str, Enum):
    SAVED = "saved"
    SAVING = "saving"
    ERROR = "error"

class AnswerStatusEnum(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"

class ReviewFilterEnum(str, Enum):
    ALL = "all"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"

class IntegrityEventEnum(str, Enum):
    TAB_SWITCH = "tab_switch"
    COPY = "copy"
    PASTE = "paste"
    RIGHT_CLICK = "right_click"
    OTHER = "other"

class ErrorCodeEnum(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    SAVE_FAILED = "SAVE_FAILED"
    SUBMIT_FAILED = "SUBMIT_FAILED"
    INVALID_STATE = "INVALID_STATE"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"


# Ordered (keyword, topic) pairs; the first keyword found in a question's text decides its topic.
TOPIC_KEYWORDS = [
    ("fraction", "Fractions"),
    ("numerator", "Fractions"),
    ("denominator", "Fractions"),
    ("decimal", "Decimals"),
    ("percent", "Percentages"),
    ("probability", "Chance & Probability"),
    ("chance", "Chance & Probability"),
    ("likely", "Chance & Probability"),
    ("graph", "Data & Statistics"),
    ("table", "Data & Statistics"),
    ("tally", "Data & Statistics"),
    ("average", "Data & Statistics"),
    ("pattern", "Patterns & Algebra"),
    ("sequence", "Patterns & Algebra"),
    ("equation", "Patterns & Algebra"),
    ("balanced", "Patterns & Algebra"),
    ("angle", "Geometry"),
    ("triangle", "Geometry"),
    ("square", "Geometry"),
    ("rectangle", "Geometry"),
    ("circle", "Geometry"),
    ("prism", "Geometry"),
    ("pyramid", "Geometry"),
    ("shape", "Geometry"),
    ("map", "Location & Transformation"),
    ("grid", "Location & Transformation"),
    ("rotate", "Location & Transformation"),
    ("reflect", "Location & Transformation"),
    ("area", "Measurement"),
    ("perimeter", "Measurement"),
    ("length", "Measurement"),
    ("mass", "Measurement"),
    ("gram", "Measurement"),
    ("litre", "Measurement"),
    ("metre", "Measurement"),
    ("clock", "Time"),
    ("hour", "Time"),
    ("minute", "Time"),
    ("cents", "Money"),
    ("$", "Money"),
    ("money", "Money"),
    ("multiply", "Number"),
    ("divide", "Number"),
    ("total", "Number"),
    ("number", "Number"),
]
DEFAULT_TOPIC = "General"

STRONG_TOPIC_THRESHOLD = 70
WEAK_TOPIC_THRESHOLD = 60
TOPIC_LIST_LIMIT = 3

# Reference percentage per year level used for the peer comparison on the results page.
NATIONAL_AVERAGES = {
    2: 64,
    3: 62,
    4: 61,
    5: 60,
    6: 59,
    7: 58,
    8: 57,
    9: 56,
}
DEFAULT_NATIONAL_AVERAGE = 60

IMPROVEMENT_WINDOW = 5
RECENT_ATTEMPTS_LIMIT = 5
HINT_PREVIEW_LENGTH = 50
DEFAULT_HINT = "Think carefully about this question!"

GRADE_BANDS = [
    (90, "A+", "Outstanding! You're a superstar!"),
    (80, "A", "Excellent work! Keep it up!"),
    (70, "B", "Good job! You're doing great!"),
    (60, "C", "Nice effort! Keep practicing!"),
    (50, "D", "You're getting there! Don't give up!"),
    (0, "F", "Keep trying! Practice makes perfect!"),
]
