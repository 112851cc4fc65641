from datetime import datetime, timedelta, timezone

from app.core.constants import AnswerStatusEnum, DifficultyEnum, QuestionTypeEnum, ReviewFilterEnum
from app.schemas.exam_attempt import CompletedAttempt
from app.schemas.question import Question
from app.schemas.results import TopicPerformance, TopicSummary
from app.services import results_analytics as analytics

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_question(id, text, number, correct_answer="A", topic=None, difficulty=None, options=None):
    return Question(
        id=id,
        exam_id="exam-1",
        question_number=number,
        question_type=QuestionTypeEnum.MULTIPLE_CHOICE,
        question_text=text,
        options=options or ["one", "two", "three", "four"],
        correct_answer=correct_answer,
        topic=topic,
        difficulty=difficulty,
    )


def make_attempt(id, percentage, days, time_spent=600):
    return CompletedAttempt(
        id=id,
        exam_id="exam-1",
        user_id="student-1",
        started_at=T0 + timedelta(days=days),
        completed_at=T0 + timedelta(days=days, minutes=20),
        score=percentage,
        total_points=100,
        percentage=percentage,
        time_spent_seconds=time_spent,
    )


def summary(topic, percentage, answered=1):
    return TopicSummary(topic=topic, total=10, answered=answered, correct=percentage // 10, percentage=percentage)


def test_first_matching_keyword_wins():
    question = make_question("q1", "What fraction of the number line is shaded?", 1)
    assert analytics.infer_topic(question) == "Fractions"


def test_keyword_matching_ignores_case_and_respects_word_starts():
    assert analytics.infer_topic(make_question("q1", "A GRAPH shows rainfall.", 1)) == "Data & Statistics"
    # "diagram" contains "gram" but not at a word start
    assert analytics.infer_topic(make_question("q2", "Look at the diagram.", 2)) == "General"
    assert analytics.infer_topic(make_question("q3", "It costs $4.", 3)) == "Money"


def test_unmatched_question_falls_back_to_general():
    assert analytics.infer_topic(make_question("q1", "Which word rhymes with cat?", 1)) == "General"


def test_explicit_topic_wins():
    question = make_question("q1", "What fraction is shaded?", 1, topic="Shading")
    assert analytics.infer_topic(question) == "Shading"


def test_topic_performance_groups_in_first_seen_order():
    questions = [
        make_question("q1", "Which fraction is largest?", 1),
        make_question("q2", "How many minutes in an hour?", 2),
        make_question("q3", "Simplify the fraction 2/4.", 3),
    ]
    perfs = analytics.topic_performance(questions, {"q1": "A", "q3": "B"})
    assert [p.topic for p in perfs] == ["Fractions", "Time"]
    assert (perfs[0].total, perfs[0].answered, perfs[0].correct) == (2, 2, 1)
    assert (perfs[1].total, perfs[1].answered, perfs[1].correct) == (1, 0, 0)


def test_strong_and_weak_split():
    strong, weak = analytics.classify_topics([
        summary("A", 80),
        summary("B", 65),
        summary("C", 30),
    ])
    assert strong == ["A"]
    assert weak == ["C"]


def test_weak_topics_need_an_answer_and_are_capped():
    strong, weak = analytics.classify_topics([
        summary("Unseen", 0, answered=0),
        summary("W1", 50),
        summary("W2", 10),
        summary("W3", 40),
        summary("W4", 20),
        summary("S1", 70),
        summary("S2", 100),
        summary("S3", 90),
        summary("S4", 80),
    ])
    assert strong == ["S2", "S3", "S4"]
    assert weak == ["W2", "W4", "W3"]


def test_merge_topic_performance_sums_counts():
    merged = analytics.merge_topic_performance([
        [TopicPerformance(topic="Time", total=2, answered=2, correct=1)],
        [TopicPerformance(topic="Time", total=3, answered=1, correct=1), TopicPerformance(topic="Money", total=1)],
    ])
    assert [(p.topic, p.total, p.answered, p.correct) for p in merged] == [("Time", 5, 3, 2), ("Money", 1, 0, 0)]


def test_position_difficulty_thirds():
    assert [analytics.position_difficulty(i, 6) for i in range(6)] == [
        DifficultyEnum.EASY, DifficultyEnum.EASY,
        DifficultyEnum.MEDIUM, DifficultyEnum.MEDIUM,
        DifficultyEnum.HARD, DifficultyEnum.HARD,
    ]
    assert analytics.position_difficulty(0, 1) == DifficultyEnum.EASY


def test_difficulty_performance_prefers_stored_difficulty():
    questions = [
        make_question("q1", "one", 1),
        make_question("q2", "two", 2, difficulty=DifficultyEnum.HARD),
        make_question("q3", "three", 3),
    ]
    results = {d.difficulty: d for d in analytics.difficulty_performance(questions, {"q1": "A", "q2": "A"})}
    assert results[DifficultyEnum.EASY].correct == 1
    assert results[DifficultyEnum.HARD].total == 2
    assert results[DifficultyEnum.HARD].correct == 1
    assert DifficultyEnum.MEDIUM not in results


def test_national_comparison():
    comparison = analytics.national_comparison(5, 72)
    assert comparison.national_average == 60
    assert comparison.delta == 12
    assert analytics.national_comparison(11, 50).delta == -10


def test_grade_bands():
    assert analytics.grade_for(95).grade == "A+"
    assert analytics.grade_for(80).grade == "A"
    assert analytics.grade_for(69).grade == "C"
    assert analytics.grade_for(0).grade == "F"


def test_time_breakdown():
    breakdown = analytics.time_breakdown(1500, 30, 4, 3)
    assert breakdown.allotted_seconds == 1800
    assert breakdown.percent_of_time_used == 83
    assert breakdown.avg_seconds_per_question == 375.0
    assert breakdown.avg_seconds_per_answered == 500.0
    assert analytics.time_breakdown(0, 30, 4, 0).avg_seconds_per_answered is None


def test_question_review_filters_and_renders_letters():
    questions = [
        make_question("q1", "one", 1, correct_answer="B"),
        make_question("q2", "two", 2),
        make_question("q3", "three", 3),
    ]
    review = analytics.question_review(questions, {"q1": "b", "q2": "D"}, flagged=["q2"])
    assert [r.status for r in review] == [
        AnswerStatusEnum.CORRECT, AnswerStatusEnum.INCORRECT, AnswerStatusEnum.UNANSWERED
    ]
    assert review[0].correct_answer_text == "two"
    assert review[1].user_answer_text == "four"
    assert review[1].flagged is True
    assert review[2].user_answer is None

    incorrect = analytics.question_review(questions, {"q1": "b", "q2": "D"}, review_filter=ReviewFilterEnum.INCORRECT)
    assert [r.question_id for r in incorrect] == ["q2"]


def test_improvement_trend_compares_halves():
    attempts = [make_attempt(f"a{i}", p, i) for i, p in enumerate([40, 50, 80, 90])]
    assert analytics.improvement_trend(reversed(attempts)) == 40


def test_improvement_trend_needs_two_attempts():
    assert analytics.improvement_trend([]) == 0
    assert analytics.improvement_trend([make_attempt("a1", 70, 0)]) == 0


def test_improvement_trend_caps_each_side_at_five():
    percentages = [10, 10, 10, 10, 10, 10, 50, 60, 60, 60, 60, 60]
    attempts = [make_attempt(f"a{i}", p, i) for i, p in enumerate(percentages)]
    assert analytics.improvement_trend(attempts) == 50


def test_improvement_trend_odd_count():
    attempts = [make_attempt(f"a{i}", p, i) for i, p in enumerate([40, 60, 81])]
    # first 1 attempt vs last 2 attempts
    assert analytics.improvement_trend(attempts) == 31


def test_aggregate_stats():
    completed = [make_attempt("a1", 40, 0, 600), make_attempt("a2", 91, 1, 900)]
    stats = analytics.aggregate_stats(3, completed)
    assert stats.total_exams_taken == 3
    assert stats.completed_exams == 2
    assert stats.average_score == 66
    assert stats.best_score == 91
    assert stats.total_time_spent == 1500
    assert stats.improvement_percentage == 51


def test_aggregate_stats_empty():
    stats = analytics.aggregate_stats(0, [])
    assert stats.average_score == 0
    assert stats.best_score == 0
