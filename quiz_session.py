"""
Quiz progression state machine.

The state is an immutable ``QuizState``; ``submit_answer`` and ``advance`` are
pure functions returning the next state. ``QuizSession`` owns the groups and the
current state for one attempt and is what callers normally use.

    Answering(g,q) --submit--> Feedback(g,q) --advance--> Answering(g,q+1)
                                                        | Answering(g+1,0)
                                                        | Terminal

Feedback is only the ``answered`` flag on the same (g, q) position.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bank import UnitModel
from grouping import FlatQuestion, Group, group_questions

logger = logging.getLogger("discrete-quiz")

DEFAULT_TITLE = "Mathematics Comprehensive Quiz"

GRADE_THRESHOLDS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


class QuizStateError(RuntimeError):
    pass


class QuizFinished(QuizStateError):
    """The quiz is over; there is no current question."""


class QuizNotFinished(QuizStateError):
    """Results were requested before the last question was passed."""


class AlreadyAnswered(QuizStateError):
    """The current question was already answered."""


class InvalidSelection(ValueError):
    """The selected option does not exist on the current question."""


@dataclass(frozen=True)
class QuizState:
    group_index: int = 0
    question_index: int = 0
    score: int = 0
    display_counter: int = 1
    answered: bool = False


@dataclass(frozen=True)
class AnswerOutcome:
    correct: bool
    selected_index: int
    correct_index: int
    explanation: str
    is_final: bool


@dataclass(frozen=True)
class QuizResults:
    score: int
    total: int
    percentage: float
    grade: str


# --- Pure helpers -----------------------------------------------------------------


def total_questions(groups: Sequence[Group]) -> int:
    return sum(len(g.questions) for g in groups)


def is_terminal(groups: Sequence[Group], state: QuizState) -> bool:
    return state.group_index >= len(groups)


def letter_grade(percentage: float) -> str:
    for bound, grade in GRADE_THRESHOLDS:
        if percentage >= bound:
            return grade
    return "F"


def correct_index_of(question: FlatQuestion) -> Optional[int]:
    """
    Accepts either a plain index or a list whose first element is the index
    (the remaining elements carry no meaning). Anything else is malformed.
    """
    answer = question.question.answer
    if isinstance(answer, list):
        answer = answer[0] if answer else None
    if isinstance(answer, bool) or not isinstance(answer, (int, float)):
        return None
    if isinstance(answer, float) and not answer.is_integer():
        return None
    return int(answer)


def current_question(groups: Sequence[Group], state: QuizState) -> Tuple[FlatQuestion, Group]:
    if is_terminal(groups, state):
        raise QuizFinished("quiz is finished; no current question")
    group = groups[state.group_index]
    return group.questions[state.question_index], group


def _at_last_in_group(groups: Sequence[Group], state: QuizState) -> bool:
    return state.question_index >= len(groups[state.group_index].questions) - 1


def _at_last_overall(groups: Sequence[Group], state: QuizState) -> bool:
    return state.group_index >= len(groups) - 1 and _at_last_in_group(groups, state)


# --- Transitions ------------------------------------------------------------------


def submit_answer(
    groups: Sequence[Group], state: QuizState, selected_index: int
) -> Tuple[QuizState, Optional[AnswerOutcome]]:
    """
    Score ``selected_index`` against the current question without moving on.

    Returns the unchanged state and ``None`` when the question has no usable
    answer. Raises ``AlreadyAnswered`` on a second submission and
    ``InvalidSelection`` for an option the question does not have.
    """
    q, _ = current_question(groups, state)
    if state.answered:
        raise AlreadyAnswered("question already answered; advance first")
    if not 0 <= selected_index < len(q.options):
        raise InvalidSelection(
            f"option {selected_index} out of range for {len(q.options)} option(s)"
        )

    correct_index = correct_index_of(q)
    if correct_index is None:
        logger.error("Invalid answer format for question %r: %r", q.prompt, q.question.answer)
        return state, None

    correct = selected_index == correct_index
    outcome = AnswerOutcome(
        correct=correct,
        selected_index=selected_index,
        correct_index=correct_index,
        explanation=q.question.explanation or "",
        is_final=_at_last_overall(groups, state),
    )
    return replace(state, score=state.score + (1 if correct else 0), answered=True), outcome


def advance(groups: Sequence[Group], state: QuizState) -> QuizState:
    if is_terminal(groups, state):
        raise QuizFinished("quiz is finished; cannot advance")
    if not _at_last_in_group(groups, state):
        nxt = replace(state, question_index=state.question_index + 1)
    else:
        nxt = replace(state, group_index=state.group_index + 1, question_index=0)
    return replace(nxt, display_counter=state.display_counter + 1, answered=False)


def compute_results(groups: Sequence[Group], state: QuizState) -> QuizResults:
    if not is_terminal(groups, state):
        raise QuizNotFinished("quiz is still in progress")
    total = total_questions(groups)
    percentage = (state.score / total) * 100 if total else 0.0
    return QuizResults(
        score=state.score, total=total, percentage=percentage, grade=letter_grade(percentage)
    )


# --- Session owner ----------------------------------------------------------------


@dataclass
class QuizSession:
    groups: Tuple[Group, ...]
    title: str = DEFAULT_TITLE
    state: QuizState = field(default_factory=QuizState)
    answers: List[Dict[str, Any]] = field(default_factory=list)
    started_at: float = field(default_factory=time.perf_counter)
    # held by callers that share the session across threads
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.groups = tuple(self.groups)
        self._total = total_questions(self.groups)

    @classmethod
    def start(
        cls,
        units: Sequence[UnitModel],
        title: str = DEFAULT_TITLE,
        rng: Optional[random.Random] = None,
    ) -> "QuizSession":
        return cls(groups=group_questions(units, rng), title=title)

    @property
    def total_questions(self) -> int:
        return self._total

    @property
    def is_finished(self) -> bool:
        return is_terminal(self.groups, self.state)

    @property
    def first_in_group(self) -> bool:
        return self.state.question_index == 0

    @property
    def elapsed_ms(self) -> int:
        return int(round((time.perf_counter() - self.started_at) * 1000))

    def current_question(self) -> Tuple[FlatQuestion, Group]:
        return current_question(self.groups, self.state)

    def submit_answer(self, selected_index: int) -> Optional[AnswerOutcome]:
        q, _ = self.current_question()
        self.state, outcome = submit_answer(self.groups, self.state, selected_index)
        if outcome is not None:
            self.answers.append(
                {
                    "position": self.state.display_counter,
                    "unit": q.unit,
                    "question": q.prompt,
                    "selected": outcome.selected_index,
                    "expected": outcome.correct_index,
                    "correct": outcome.correct,
                }
            )
        return outcome

    def advance(self) -> QuizState:
        self.state = advance(self.groups, self.state)
        return self.state

    def compute_results(self) -> QuizResults:
        return compute_results(self.groups, self.state)
