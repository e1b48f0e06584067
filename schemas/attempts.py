from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AttemptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    created_at: datetime | None
    session_id: str | None = None
    title: str = ""
    total: int
    correct: int
    percentage: float
    grade: str
    duration_ms: int | None = None
    # per-question log; left out of list views
    items: list[Any] | None = None
