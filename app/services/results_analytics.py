"""
Pure computations behind the results page and the dashboard.

Nothing here touches the record store; callers pass in questions, answers
and attempt records that were already loaded.
"""
import math
import re
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from app.core.constants import (
    DEFAULT_NATIONAL_AVERAGE, DEFAULT_TOPIC, GRADE_BANDS, IMPROVEMENT_WINDOW,
    NATIONAL_AVERAGES, STRONG_TOPIC_THRESHOLD, TOPIC_KEYWORDS, TOPIC_LIST_LIMIT,
    WEAK_TOPIC_THRESHOLD, AnswerStatusEnum, DifficultyEnum, ReviewFilterEnum
)
from app.schemas.exam_attempt import CompletedAttempt
from app.schemas.question import Question
from app.schemas.results import (
    DashboardStats, DifficultyPerformance, GradeInfo, NationalComparison,
    QuestionReview, TimeBreakdown, TopicPerformance, TopicSummary
)
from app.services.attempt_clock import duration_seconds, ensure_aware
from app.services.scoring import (
    answer_status, calculate_percentage, normalize_answer, option_text_for,
    question_points, round_half_up
)

POSITION_DIFFICULTIES = [DifficultyEnum.EASY, DifficultyEnum.MEDIUM, DifficultyEnum.HARD]


def _keyword_pattern(keyword: str):
    escaped = re.escape(keyword)
    if keyword[0].isalnum():
        escaped = r"\b" + escaped
    return re.compile(escaped, re.IGNORECASE)


_TOPIC_PATTERNS = [(_keyword_pattern(keyword), topic) for keyword, topic in TOPIC_KEYWORDS]


def infer_topic(question: Question) -> str:
    if question.topic:
        return question.topic
    for pattern, topic in _TOPIC_PATTERNS:
        if pattern.search(question.question_text or ""):
            return topic
    return DEFAULT_TOPIC


def topic_performance(questions: Sequence[Question], answers: Mapping[str, str]) -> List[TopicPerformance]:
    topics: Dict[str, TopicPerformance] = {}
    for question in questions:
        topic = infer_topic(question)
        perf = topics.setdefault(topic, TopicPerformance(topic=topic))
        perf.total += 1
        status = answer_status(question, answers.get(question.id))
        if status != AnswerStatusEnum.UNANSWERED:
            perf.answered += 1
        if status == AnswerStatusEnum.CORRECT:
            perf.correct += 1
    return list(topics.values())


def merge_topic_performance(groups: Iterable[Iterable[TopicPerformance]]) -> List[TopicPerformance]:
    merged: Dict[str, TopicPerformance] = {}
    for group in groups:
        for perf in group:
            target = merged.setdefault(perf.topic, TopicPerformance(topic=perf.topic))
            target.total += perf.total
            target.answered += perf.answered
            target.correct += perf.correct
    return list(merged.values())


def summarize_topics(performances: Iterable[TopicPerformance]) -> List[TopicSummary]:
    return [
        TopicSummary(
            topic=p.topic,
            total=p.total,
            answered=p.answered,
            correct=p.correct,
            percentage=calculate_percentage(p.correct, p.total),
        )
        for p in performances
    ]


def classify_topics(summaries: Sequence[TopicSummary]) -> Tuple[List[str], List[str]]:
    """Strong topics best first and weak topics worst first, at most three of each."""
    strong = sorted(
        (s for s in summaries if s.percentage >= STRONG_TOPIC_THRESHOLD),
        key=lambda s: s.percentage,
        reverse=True,
    )
    weak = sorted(
        (s for s in summaries if s.percentage < WEAK_TOPIC_THRESHOLD and s.answered > 0),
        key=lambda s: s.percentage,
    )
    return (
        [s.topic for s in strong[:TOPIC_LIST_LIMIT]],
        [s.topic for s in weak[:TOPIC_LIST_LIMIT]],
    )


def position_difficulty(index: int, count: int) -> DifficultyEnum:
    if count <= 0:
        return DifficultyEnum.EASY
    return POSITION_DIFFICULTIES[min(2, index * 3 // count)]


def difficulty_performance(questions: Sequence[Question], answers: Mapping[str, str]) -> List[DifficultyPerformance]:
    totals = {d: [0, 0] for d in POSITION_DIFFICULTIES}
    for index, question in enumerate(questions):
        difficulty = question.difficulty or position_difficulty(index, len(questions))
        totals[difficulty][0] += 1
        if answer_status(question, answers.get(question.id)) == AnswerStatusEnum.CORRECT:
            totals[difficulty][1] += 1

    return [
        DifficultyPerformance(
            difficulty=difficulty,
            total=total,
            correct=correct,
            percentage=calculate_percentage(correct, total),
        )
        for difficulty, (total, correct) in totals.items()
        if total
    ]


def national_comparison(year_level: int, percentage: int) -> NationalComparison:
    average = NATIONAL_AVERAGES.get(year_level, DEFAULT_NATIONAL_AVERAGE)
    return NationalComparison(
        year_level=year_level,
        national_average=average,
        percentage=percentage,
        delta=percentage - average,
    )


def grade_for(percentage: int) -> GradeInfo:
    for threshold, grade, message in GRADE_BANDS:
        if percentage >= threshold:
            return GradeInfo(grade=grade, message=message)
    _, grade, message = GRADE_BANDS[-1]
    return GradeInfo(grade=grade, message=message)


def time_breakdown(time_spent: int, duration_minutes: Optional[int], question_count: int, answered_count: int) -> TimeBreakdown:
    allotted = duration_seconds(duration_minutes)
    return TimeBreakdown(
        time_spent_seconds=time_spent,
        allotted_seconds=allotted,
        percent_of_time_used=calculate_percentage(time_spent, allotted),
        avg_seconds_per_question=round(time_spent / question_count, 1) if question_count else 0.0,
        avg_seconds_per_answered=round(time_spent / answered_count, 1) if answered_count else None,
    )


def question_review(
    questions: Sequence[Question],
    answers: Mapping[str, str],
    flagged: Iterable[str] = (),
    review_filter: ReviewFilterEnum = ReviewFilterEnum.ALL,
) -> List[QuestionReview]:
    flagged_ids = set(flagged)
    review = []
    for question in questions:
        user_answer = answers.get(question.id)
        status = answer_status(question, user_answer)
        if review_filter != ReviewFilterEnum.ALL and status.value != review_filter.value:
            continue
        review.append(QuestionReview(
            question_id=question.id,
            question_number=question.question_number,
            question_text=question.question_text,
            status=status,
            user_answer=user_answer if normalize_answer(user_answer) else None,
            user_answer_text=option_text_for(question, user_answer) if normalize_answer(user_answer) else None,
            correct_answer_text=option_text_for(question, question.correct_answer),
            explanation=question.explanation,
            points=question_points(question),
            flagged=question.id in flagged_ids,
        ))
    return review


def _attempt_timestamp(attempt: CompletedAttempt) -> datetime:
    return ensure_aware(attempt.completed_at or attempt.started_at)


def improvement_trend(attempts: Iterable[CompletedAttempt]) -> int:
    """
    Mean percentage of the newest attempts minus that of the oldest ones,
    each side capped at five attempts. Fewer than two scored attempts give 0.
    """
    scored = sorted(
        (a for a in attempts if a.percentage is not None),
        key=_attempt_timestamp,
    )
    count = len(scored)
    if count < 2:
        return 0

    first = scored[:min(IMPROVEMENT_WINDOW, count // 2)]
    last = scored[-min(IMPROVEMENT_WINDOW, math.ceil(count / 2)):]
    first_mean = sum(a.percentage for a in first) / len(first)
    last_mean = sum(a.percentage for a in last) / len(last)
    return round_half_up(last_mean - first_mean)


def aggregate_stats(total_attempts: int, completed: Sequence[CompletedAttempt]) -> DashboardStats:
    scores = [a.percentage for a in completed if a.percentage is not None]
    return DashboardStats(
        total_exams_taken=total_attempts,
        completed_exams=len(completed),
        average_score=round_half_up(sum(scores) / len(scores)) if scores else 0,
        best_score=max(scores) if scores else 0,
        total_time_spent=sum(a.time_spent_seconds or 0 for a in completed),
        improvement_percentage=improvement_trend(completed),
    )
