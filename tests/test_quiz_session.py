import logging
import random

import pytest

from bank import parse_units
from grouping import group_questions
from quiz_session import (
    AlreadyAnswered,
    InvalidSelection,
    QuizFinished,
    QuizNotFinished,
    QuizSession,
    QuizState,
    advance,
    compute_results,
    letter_grade,
    submit_answer,
)


def _bank(answers_by_unit):
    units = []
    for u, answers in enumerate(answers_by_unit):
        units.append(
            {
                "title": f"U{u}",
                "data": {"type": "raw", "values": [u]},
                "questions": [
                    {"question": f"u{u}-q{i}", "options": ["a", "b", "c"], "answer": a}
                    for i, a in enumerate(answers)
                ],
            }
        )
    return parse_units(units)


def _correct(session):
    q, _ = session.current_question()
    a = q.question.answer
    return a[0] if isinstance(a, list) else a


def test_initial_state():
    s = QuizSession.start(_bank([[0]]))
    assert s.state == QuizState(0, 0, 0, 1, False)
    assert s.total_questions == 1
    assert not s.is_finished


def test_all_correct_five_questions_two_groups():
    s = QuizSession.start(_bank([[0, 1, 2], [1, [2, 99]]]), rng=random.Random(5))
    assert len(s.groups) == 2
    assert s.total_questions == 5

    while not s.is_finished:
        outcome = s.submit_answer(_correct(s))
        assert outcome.correct
        s.advance()

    r = s.compute_results()
    assert (r.score, r.total, r.percentage, r.grade) == (5, 5, 100.0, "A")
    assert len(s.answers) == 5 and all(a["correct"] for a in s.answers)


def test_display_counter_steps_by_one_and_ends_at_total():
    s = QuizSession.start(_bank([[0, 0], [0], [0, 0, 0]]))
    seen = []
    while not s.is_finished:
        seen.append(s.state.display_counter)
        s.advance()
    assert seen == list(range(1, s.total_questions + 1))


def test_advance_crosses_group_boundary():
    s = QuizSession.start(_bank([[0, 0], [0]]))
    first_size = len(s.groups[0].questions)
    for _ in range(first_size - 1):
        s.advance()
        assert s.state.group_index == 0
    s.advance()
    assert (s.state.group_index, s.state.question_index) == (1, 0)
    assert s.first_in_group


def test_wrong_answer_scores_nothing_and_reports_correct_index():
    s = QuizSession.start(_bank([[2]]))
    outcome = s.submit_answer(0)
    assert not outcome.correct
    assert outcome.correct_index == 2
    assert outcome.selected_index == 0
    assert outcome.is_final
    assert s.state.score == 0
    # the cursor does not move on submission
    assert (s.state.group_index, s.state.question_index) == (0, 0)


def test_double_submission_is_rejected():
    s = QuizSession.start(_bank([[1, 1]]))
    s.submit_answer(_correct(s))
    with pytest.raises(AlreadyAnswered):
        s.submit_answer(_correct(s))
    assert s.state.score == 1
    s.advance()
    s.submit_answer(_correct(s))
    assert s.state.score == 2


def test_list_answer_uses_first_element_only():
    s = QuizSession.start(_bank([[[1, 0, 2]]]))
    assert s.submit_answer(1).correct


def test_malformed_answer_is_ignored(caplog):
    units = parse_units(
        [{"questions": [{"question": "broken", "options": ["a"], "answer": "0"}]}]
    )
    s = QuizSession.start(units)
    with caplog.at_level(logging.ERROR, logger="discrete-quiz"):
        assert s.submit_answer(0) is None
    assert "Invalid answer format" in caplog.text
    assert s.state.score == 0 and not s.state.answered
    # still possible to move past it
    s.advance()
    assert s.is_finished


@pytest.mark.parametrize("answer", [True, [], None, {"i": 0}, 1.5])
def test_other_answer_shapes_are_malformed(answer):
    units = parse_units([{"questions": [{"question": "q", "options": ["a", "b"], "answer": answer}]}])
    s = QuizSession.start(units)
    assert s.submit_answer(1) is None


def test_current_question_when_finished_raises():
    s = QuizSession.start(_bank([[0]]))
    s.advance()
    with pytest.raises(QuizFinished):
        s.current_question()
    with pytest.raises(QuizFinished):
        s.advance()


def test_results_before_finish_raise():
    s = QuizSession.start(_bank([[0]]))
    with pytest.raises(QuizNotFinished):
        s.compute_results()


def test_empty_quiz_results():
    s = QuizSession.start([])
    assert s.is_finished
    r = s.compute_results()
    assert (r.score, r.total, r.percentage, r.grade) == (0, 0, 0, "F")


def test_pure_transitions_do_not_mutate_state():
    groups = group_questions(_bank([[0, 0]]))
    start = QuizState()
    answered, outcome = submit_answer(groups, start, 0)
    assert outcome.correct
    assert start == QuizState()
    assert answered.score == 1 and answered.answered
    moved = advance(groups, answered)
    assert answered.question_index == 0
    assert (moved.question_index, moved.display_counter, moved.answered) == (1, 2, False)


def test_compute_results_from_state():
    groups = group_questions(_bank([[0] * 10]))
    r = compute_results(groups, QuizState(group_index=1, score=9))
    assert (r.percentage, r.grade) == (90.0, "A")
    r = compute_results(groups, QuizState(group_index=1, score=8))
    assert (r.percentage, r.grade) == (80.0, "B")


@pytest.mark.parametrize(
    "pct,grade",
    [(100, "A"), (90, "A"), (89.99, "B"), (80, "B"), (79.9, "C"), (70, "C"), (60, "D"), (59.9, "F"), (0, "F")],
)
def test_letter_grade_bounds(pct, grade):
    assert letter_grade(pct) == grade


def test_out_of_range_selection_is_rejected_without_using_the_attempt():
    s = QuizSession.start(_bank([[1]]))
    for bad in (3, 99, -1):
        with pytest.raises(InvalidSelection):
            s.submit_answer(bad)
    assert not s.state.answered and s.state.score == 0
    assert s.submit_answer(1).correct
