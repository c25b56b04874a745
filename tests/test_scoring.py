from types import SimpleNamespace

import pytest

from schemas.results import AnswerIn
from services.scoring import grade_answers, rank_against


def _questions(correct, categories=None, difficulties=None):
    return [
        SimpleNamespace(
            id=i + 1,
            correct_answer=c,
            category=categories[i] if categories else "logic",
            difficulty=difficulties[i] if difficulties else "medium",
        )
        for i, c in enumerate(correct)
    ]


def _answers(selected):
    return [AnswerIn(question_id=i + 1, selected_answer=s) for i, s in enumerate(selected)]


def test_one_unanswered_of_four():
    g = grade_answers(_questions([1, 0, 2, 3]), _answers([1, 0, 2, None]))
    assert (g.correct_answers, g.wrong_answers, g.unanswered_questions) == (3, 0, 1)
    assert g.score == 75


def test_empty_submission_counts_every_question_unanswered():
    g = grade_answers(_questions([0, 1, 2, 3, 0]), [])
    assert g.unanswered_questions == 5
    assert g.correct_answers == 0
    assert g.score == 0
    assert len(g.answers) == 5


def test_no_questions_scores_zero():
    g = grade_answers([], _answers([1, 2]))
    assert g.total_questions == 0
    assert g.score == 0


def test_wrong_answers_counted():
    g = grade_answers(_questions([1, 1, 1]), _answers([0, 1, 3]))
    assert (g.correct_answers, g.wrong_answers, g.unanswered_questions) == (1, 2, 0)
    assert g.score == pytest.approx(100 / 3)


def test_answers_for_unknown_questions_are_ignored():
    answers = _answers([1]) + [AnswerIn(question_id=999, selected_answer=0)]
    g = grade_answers(_questions([1, 2]), answers)
    assert g.correct_answers == 1
    assert g.unanswered_questions == 1
    assert [a["question"] for a in g.answers] == [1, 2]


def test_first_answer_wins_for_duplicates():
    answers = [
        AnswerIn(question_id=1, selected_answer=0),
        AnswerIn(question_id=1, selected_answer=1),
    ]
    g = grade_answers(_questions([1]), answers)
    assert g.correct_answers == 0 and g.wrong_answers == 1


def test_counts_always_add_up():
    qs = _questions([0, 1, 2, 3, 0, 1])
    for selected in ([0, 1, 2, 3, 0, 1], [None] * 6, [3, 3, 3, 3, 3, 3], [0, None, 1]):
        g = grade_answers(qs, _answers(selected))
        assert g.correct_answers + g.wrong_answers + g.unanswered_questions == g.total_questions


def test_answer_detail_shape():
    g = grade_answers(_questions([2]), [AnswerIn(question_id=1, selected_answer=2, time_spent=7)])
    assert g.answers == [
        {"question": 1, "selectedAnswer": 2, "correctAnswer": 2, "isCorrect": True, "timeSpent": 7}
    ]


def test_category_and_difficulty_breakdowns():
    qs = _questions(
        [0, 0, 0, 0],
        categories=["logic", "verbal", "logic", "verbal"],
        difficulties=["easy", "easy", "hard", "medium"],
    )
    g = grade_answers(qs, _answers([0, 1, 0, None]))

    assert g.category_performance == [
        {"category": "logic", "correctAnswers": 2, "totalQuestions": 2, "percentage": 100.0},
        {"category": "verbal", "correctAnswers": 0, "totalQuestions": 2, "percentage": 0.0},
    ]
    by_difficulty = {d["difficulty"]: d for d in g.difficulty_performance}
    assert by_difficulty["easy"]["correctAnswers"] == 1
    assert by_difficulty["easy"]["percentage"] == 50.0
    assert by_difficulty["hard"]["percentage"] == 100.0
    assert by_difficulty["medium"]["totalQuestions"] == 1


def test_rank_first_attempt():
    s = rank_against([], 40.0)
    assert (s.rank, s.percentile, s.total_participants) == (1, 100.0, 1)


def test_rank_top_score_is_first():
    s = rank_against([90.0, 75.0, 10.0], 95.0)
    assert s.rank == 1
    assert s.percentile == 100.0
    assert s.total_participants == 4


def test_rank_lowest_score():
    s = rank_against([90.0, 75.0], 10.0)
    assert s.rank == 3
    assert s.percentile == 0.0


def test_rank_ties_go_behind_earlier_attempts():
    s = rank_against([80.0, 50.0, 50.0, 20.0], 50.0)
    assert s.rank == 4
    assert s.percentile == pytest.approx(25.0)
