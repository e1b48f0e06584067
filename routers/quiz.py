# routers/quiz.py – drives a QuizSession over HTTP
from __future__ import annotations

import logging
import os
import uuid
from typing import Dict

from fastapi import APIRouter, HTTPException

from bank import BankLoadError, get_units
from quiz_session import (
    DEFAULT_TITLE,
    AlreadyAnswered,
    InvalidSelection,
    QuizFinished,
    QuizNotFinished,
    QuizSession,
)
from schemas.quiz import (
    FINAL_LABEL,
    NEXT_LABEL,
    AnswerFeedback,
    AnswerRequest,
    AnswerResponse,
    NextResponse,
    Progress,
    QuestionStep,
    QuizResultsOut,
    SharedDataBlock,
    StartQuizResponse,
)

logger = logging.getLogger("discrete-quiz")

router = APIRouter(prefix="/quiz", tags=["quiz"])

# Live sessions, in memory only; a restart loses them.
# A session is dropped once its results have been shown.
_sessions: Dict[str, QuizSession] = {}


def _get_session(sid: str) -> QuizSession:
    s = _sessions.get(sid)
    if s is None:
        raise HTTPException(status_code=404, detail="quiz session not found")
    return s


def _step(sid: str, s: QuizSession) -> QuestionStep:
    q, group = s.current_question()
    return QuestionStep(
        session_id=sid,
        progress=Progress(current=s.state.display_counter, total=s.total_questions),
        first_in_group=s.first_in_group,
        shared_data=SharedDataBlock.from_data(group.data),
        unit=q.unit,
        prompt=q.prompt,
        options=q.options,
        difficulty=q.question.difficulty,
    )


def _record_attempt(sid: str, s: QuizSession, score: int, total: int, pct: float, grade: str):
    try:
        from db import SessionLocal
        from models import Attempt

        with SessionLocal() as db:
            attempt = Attempt(
                session_id=sid,
                title=s.title,
                total=total,
                correct=score,
                percentage=pct,
                grade=grade,
                items=s.answers,
                duration_ms=s.elapsed_ms,
            )
            db.add(attempt)
            db.commit()
            db.refresh(attempt)
            return attempt.id
    except Exception:
        logger.exception("Could not record attempt for session %s", sid)
        return None


@router.post("/start", response_model=StartQuizResponse)
def start_quiz():
    try:
        units = get_units()
    except BankLoadError as e:
        raise HTTPException(status_code=503, detail=f"quiz bank unavailable: {e}")

    s = QuizSession.start(units, title=os.getenv("QUIZ_TITLE") or DEFAULT_TITLE)
    sid = uuid.uuid4().hex
    # build the first step before registering so a render failure leaves nothing behind
    step = None if s.is_finished else _step(sid, s)
    _sessions[sid] = s
    logger.info("Started quiz session %s: %d groups, %d questions", sid, len(s.groups), s.total_questions)

    return {
        "session_id": sid,
        "title": s.title,
        "total": s.total_questions,
        "step": step,
    }


@router.get("/{sid}", response_model=QuestionStep)
def current_step(sid: str):
    s = _get_session(sid)
    with s.lock:
        try:
            return _step(sid, s)
        except QuizFinished as e:
            raise HTTPException(status_code=409, detail=str(e))


@router.post("/{sid}/answer", response_model=AnswerResponse)
def answer(sid: str, req: AnswerRequest):
    s = _get_session(sid)
    with s.lock:
        try:
            outcome = s.submit_answer(req.selected_index)
        except (AlreadyAnswered, QuizFinished) as e:
            raise HTTPException(status_code=409, detail=str(e))
        except InvalidSelection as e:
            raise HTTPException(status_code=422, detail=str(e))

    if outcome is None:
        return {"ok": False, "error": "question has an invalid answer format"}

    return {
        "ok": True,
        "feedback": AnswerFeedback(
            correct=outcome.correct,
            selected_index=outcome.selected_index,
            correct_index=outcome.correct_index,
            explanation=outcome.explanation,
            is_final=outcome.is_final,
            next_label=FINAL_LABEL if outcome.is_final else NEXT_LABEL,
        ),
    }


@router.post("/{sid}/next", response_model=NextResponse)
def next_question(sid: str):
    s = _get_session(sid)
    with s.lock:
        try:
            s.advance()
        except QuizFinished as e:
            raise HTTPException(status_code=409, detail=str(e))
        if s.is_finished:
            return {"finished": True, "step": None}
        return {"finished": False, "step": _step(sid, s)}


@router.get("/{sid}/results", response_model=QuizResultsOut)
def results(sid: str):
    s = _get_session(sid)
    with s.lock:
        # another request may have shown the results while we waited
        if _sessions.get(sid) is not s:
            raise HTTPException(status_code=404, detail="quiz session not found")
        try:
            r = s.compute_results()
        except QuizNotFinished as e:
            raise HTTPException(status_code=409, detail=str(e))

        attempt_id = _record_attempt(sid, s, r.score, r.total, r.percentage, r.grade)
        _sessions.pop(sid, None)

    return {
        "score": r.score,
        "total": r.total,
        "percentage": r.percentage,
        "grade": r.grade,
        "attempt_id": attempt_id,
    }


@router.delete("/{sid}")
def discard(sid: str):
    _get_session(sid)
    _sessions.pop(sid, None)
    return {"ok": True}
