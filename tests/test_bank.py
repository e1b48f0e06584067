import json

import pytest

from bank import BankLoadError, QuizBank, get_units, parse_units, read_bank, reload_bank


def test_default_fixture_bank_loads():
    units = get_units()
    assert [u.display_name for u in units] == ["Statistics", "logic"]
    assert sum(len(u.questions) for u in units) == 5
    assert units[0].questions[1].answer == [1, 8]


def test_reload_returns_question_count():
    assert reload_bank() == 5
    assert QuizBank._units


def test_non_list_root_is_a_load_error(tmp_path):
    p = tmp_path / "bank.json"
    p.write_text(json.dumps({"questions": []}), encoding="utf-8")
    with pytest.raises(BankLoadError):
        read_bank(p)


def test_question_without_options_is_a_load_error():
    with pytest.raises(BankLoadError):
        parse_units([{"questions": [{"question": "q", "options": [], "answer": 0}]}])


def test_question_without_answer_is_a_load_error():
    with pytest.raises(BankLoadError):
        parse_units([{"questions": [{"question": "q", "options": ["a"]}]}])


def test_failed_reload_keeps_previous_bank(tmp_path, monkeypatch):
    get_units()
    monkeypatch.setenv("QUIZ_BANK_PATH", str(tmp_path / "gone.json"))
    with pytest.raises(BankLoadError):
        reload_bank()
    assert len(QuizBank._units) == 2


def test_unit_display_name_fallbacks():
    units = parse_units([{"title": "T", "id": "i"}, {"id": "i"}, {}])
    assert [u.display_name for u in units] == ["T", "i", ""]


def test_numeric_unit_id_and_title_load():
    units = parse_units(
        [
            {"id": 3, "questions": [{"question": "q", "options": ["a"], "answer": 0}]},
            {"id": "u", "title": 12},
        ]
    )
    assert [u.display_name for u in units] == ["3", "12"]
