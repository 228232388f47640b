import json

import pytest

from aiquiz.core.exceptions import ConfigurationError
from aiquiz.utils.question_bank import load_questions


def test_bundled_bank_loads():
    questions = load_questions()
    assert len(questions) >= 10
    assert len({q.id for q in questions}) == len(questions)
    for question in questions:
        assert question.correct in question.options


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_questions(tmp_path / "nope.json")


def test_correct_answer_must_be_an_option(tmp_path):
    path = tmp_path / "bank.json"
    path.write_text(
        json.dumps([{"id": 1, "question": "?", "options": ["a", "b"], "correct": "c"}]),
        encoding="utf-8",
    )
    with pytest.raises(ConfigurationError):
        load_questions(path)


def test_empty_bank(tmp_path):
    path = tmp_path / "bank.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_questions(path)
