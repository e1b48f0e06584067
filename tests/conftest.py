import os
import tempfile
from pathlib import Path

# Must be set before db/bank are imported by the test modules
_TMP = Path(tempfile.mkdtemp(prefix="quiz-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["QUIZ_BANK_PATH"] = str(Path(__file__).parent / "data" / "bank.json")

import pytest  # noqa: E402

from bank import QuizBank  # noqa: E402
from db import Base, engine  # noqa: E402
import models  # noqa: E402,F401

Base.metadata.create_all(engine)

BANK_PATH = os.environ["QUIZ_BANK_PATH"]


@pytest.fixture(autouse=True)
def _fresh_bank(monkeypatch):
    monkeypatch.setenv("QUIZ_BANK_PATH", BANK_PATH)
    QuizBank._units = []
    yield
    QuizBank._units = []
