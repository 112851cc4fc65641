import string
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Sequence

from app.core.constants import AnswerStatusEnum, QuestionTypeEnum
from app.schemas.question import Question
from app.schemas.results import ScoreResult


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_percentage(earned: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(Decimal(earned) * 100 / Decimal(total))


def normalize_answer(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip().upper()


def question_points(question: Question) -> int:
    return question.points or 1


def letter_index(value: str, options: Sequence[str]) -> Optional[int]:
    """Position named by a single letter code, when that option exists."""
    if len(value) != 1 or value not in string.ascii_uppercase:
        return None
    index = string.ascii_uppercase.index(value)
    if index >= len(options):
        return None
    return index


def option_text_for(question: Question, value: Optional[str]) -> Optional[str]:
    """Resolves a letter code to its option text for display."""
    if value is None:
        return None
    options = question.options or []
    index = letter_index(normalize_answer(value), options)
    if question.question_type == QuestionTypeEnum.MULTIPLE_CHOICE and index is not None:
        return options[index]
    return value


def is_correct(question: Question, answer: Optional[str]) -> bool:
    given = normalize_answer(answer)
    expected = normalize_answer(question.correct_answer)
    if not given:
        return False
    if given == expected:
        return True

    if question.question_type != QuestionTypeEnum.MULTIPLE_CHOICE or not question.options:
        return False

    options = [normalize_answer(option) for option in question.options]

    # Canonical letter, answer given as option text
    expected_index = letter_index(expected, options)
    if expected_index is not None and options[expected_index] == given:
        return True

    # Canonical option text, answer given as letter
    given_index = letter_index(given, options)
    if given_index is not None and options[given_index] == expected:
        return True

    return False


def answer_status(question: Question, answer: Optional[str]) -> AnswerStatusEnum:
    if not normalize_answer(answer):
        return AnswerStatusEnum.UNANSWERED
    if is_correct(question, answer):
        return AnswerStatusEnum.CORRECT
    return AnswerStatusEnum.INCORRECT


def score_attempt(questions: Sequence[Question], answers: Mapping[str, str]) -> ScoreResult:
    earned = 0
    total = 0
    correct_count = 0
    incorrect_count = 0
    unanswered_count = 0

    for question in questions:
        points = question_points(question)
        total += points
        status = answer_status(question, answers.get(question.id))
        if status == AnswerStatusEnum.CORRECT:
            earned += points
            correct_count += 1
        elif status == AnswerStatusEnum.INCORRECT:
            incorrect_count += 1
        else:
            unanswered_count += 1

    return ScoreResult(
        earned=earned,
        total=total,
        percentage=calculate_percentage(earned, total),
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        unanswered_count=unanswered_count,
    )
