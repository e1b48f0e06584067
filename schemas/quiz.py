# schemas/quiz.py – render instructions handed to the presentation layer
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

FDT_DEFAULT_TITLE = "Frequency Distribution Table"
RAW_DEFAULT_TITLE = "Raw Data"
NEXT_LABEL = "Next Question"
FINAL_LABEL = "See Final Results"


class Progress(BaseModel):
    current: int
    total: int


class SharedDataBlock(BaseModel):
    kind: Literal["FDT", "raw", "generic"]
    title: str = ""
    headers: Optional[List[Any]] = None
    rows: Optional[List[Any]] = None
    note: Optional[str] = None
    values: Optional[List[Any]] = None
    content: Optional[str] = None

    @classmethod
    def from_data(cls, data: Optional[Dict[str, Any]]) -> Optional["SharedDataBlock"]:
        """Classify a raw shared-data dict; ``None`` when there is nothing to show."""
        if not data:
            return None
        kind = data.get("type")
        headers, rows = data.get("headers"), data.get("rows")
        if kind == "FDT" and isinstance(headers, list) and isinstance(rows, list):
            return cls(
                kind="FDT",
                title=str(data.get("title") or FDT_DEFAULT_TITLE),
                headers=headers,
                rows=rows,
                note=str(data["note"]) if data.get("note") else None,
            )
        values = data.get("values")
        if kind == "raw" and isinstance(values, list):
            return cls(
                kind="raw", title=str(data.get("title") or RAW_DEFAULT_TITLE), values=values
            )
        if data.get("title") or data.get("content"):
            content = data.get("content")
            return cls(
                kind="generic",
                title=str(data.get("title") or ""),
                content="" if content is None else str(content),
            )
        return None


class QuestionStep(BaseModel):
    session_id: str
    progress: Progress
    first_in_group: bool
    shared_data: Optional[SharedDataBlock] = None
    unit: str = ""
    prompt: str
    options: List[str]
    difficulty: Optional[str] = None


class StartQuizResponse(BaseModel):
    session_id: str
    title: str
    total: int
    step: Optional[QuestionStep] = None


class AnswerRequest(BaseModel):
    selected_index: int = Field(ge=0)


class AnswerFeedback(BaseModel):
    correct: bool
    selected_index: int
    correct_index: int
    explanation: str = ""
    is_final: bool
    next_label: str


class AnswerResponse(BaseModel):
    ok: bool
    feedback: Optional[AnswerFeedback] = None
    error: Optional[str] = None


class NextResponse(BaseModel):
    finished: bool
    step: Optional[QuestionStep] = None


class QuizResultsOut(BaseModel):
    score: int
    total: int
    percentage: float
    grade: str
    attempt_id: Optional[int] = None
