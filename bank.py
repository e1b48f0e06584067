# bank.py – loads the quiz bank (a JSON list of units)

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger("discrete-quiz")

_BASE = Path(__file__).resolve().parent
_DEFAULT_BANK = _BASE / "data" / "quiz.json"


class BankLoadError(RuntimeError):
    """The quiz bank could not be read or parsed."""


class QuestionModel(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    question: str
    options: List[str] = Field(min_length=1)
    # Shape is checked when the question is answered, not here:
    # a bad answer only makes that one question unanswerable.
    answer: Any
    difficulty: Optional[str] = None
    explanation: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class UnitModel(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    # JSON banks use both numeric and string ids
    id: Optional[Union[str, int]] = None
    title: Optional[Union[str, int]] = None
    data: Optional[Dict[str, Any]] = None
    questions: List[QuestionModel] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return str(self.title or self.id or "")


def bank_path() -> Path:
    return Path(os.getenv("QUIZ_BANK_PATH") or _DEFAULT_BANK)


def parse_units(raw: Any) -> List[UnitModel]:
    if not isinstance(raw, list):
        raise BankLoadError(f"quiz bank root must be a list, got {type(raw).__name__}")
    try:
        return [UnitModel.model_validate(u) for u in raw]
    except ValidationError as e:
        raise BankLoadError(f"invalid quiz bank: {e.error_count()} validation error(s)") from e


def read_bank(path: Path) -> List[UnitModel]:
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise BankLoadError(f"cannot read quiz bank {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise BankLoadError(f"malformed quiz bank {path}: {e}") from e
    return parse_units(raw)


class QuizBank:
    _units: List[UnitModel] = []

    @classmethod
    def load(cls) -> List[UnitModel]:
        if not cls._units:
            cls.reload()
        return cls._units

    @classmethod
    def reload(cls) -> int:
        path = bank_path()
        try:
            units = read_bank(path)
        except BankLoadError:
            logger.error("Error loading quiz bank from %s", path, exc_info=True)
            raise
        cls._units = units
        count = sum(len(u.questions) for u in units)
        logger.info("Loaded %d units (%d questions) from %s", len(units), count, path)
        return count


# Public API
def get_units() -> List[UnitModel]:
    return QuizBank.load()


def reload_bank() -> int:
    return QuizBank.reload()
