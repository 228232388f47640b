import json

import pytest

from aiquiz.schemas.quiz import Question, QuizSnapshot
from aiquiz.utils.local_store import LocalStore


def make_snapshot(status="in-progress"):
    question = Question(id=1, question="2 + 2?", options=["3", "4"], correct="4")
    return QuizSnapshot(
        quiz_status=status,
        quiz_mode="exam",
        selected_question_count=1,
        current_question_index=0,
        selected_questions=[question],
        user_answers=["4"],
        time_remaining=17,
    )


@pytest.fixture
def store(tmp_path, mono_clock):
    return LocalStore(path=tmp_path / "store.json", clock=mono_clock)


def test_consent_is_remembered(tmp_path, store):
    assert store.get_consent() is None
    store.set_consent(True)
    assert LocalStore(path=tmp_path / "store.json").has_consent()


def test_save_requires_consent(store):
    assert store.save_quiz_state(make_snapshot()) is False
    assert store.get("quizState") is None
    store.set_consent(True)
    assert store.save_quiz_state(make_snapshot()) is True


def test_declining_clears_saved_quiz(store):
    store.set_consent(True)
    store.save_quiz_state(make_snapshot())
    store.set_consent(False)
    assert store.get_consent() == "declined"
    assert store.get("quizState") is None


def test_load_round_trip(tmp_path, store, mono_clock):
    store.set_consent(True)
    store.save_quiz_state(make_snapshot())

    reopened = LocalStore(path=tmp_path / "store.json", clock=mono_clock)
    snapshot = reopened.load_quiz_state()
    assert snapshot.selected_questions[0].correct == "4"
    assert snapshot.user_answers == ["4"]
    assert snapshot.time_remaining == 17
    assert snapshot.timestamp == mono_clock.now

    raw = json.loads((tmp_path / "store.json").read_text(encoding="utf-8"))
    assert raw["quizState"]["quizStatus"] == "in-progress"
    assert raw["quizState"]["selectedQuestions"][0]["options"] == ["3", "4"]


def test_load_without_consent(store):
    store.set_consent(True)
    store.save_quiz_state(make_snapshot())
    store.set("cookieConsent", "declined")
    assert store.load_quiz_state() is None


def test_stale_snapshot_is_discarded(store, mono_clock):
    store.set_consent(True)
    store.save_quiz_state(make_snapshot())
    mono_clock.advance(seconds=24 * 60 * 60 - 1)
    assert store.load_quiz_state() is not None
    mono_clock.advance(seconds=1)
    assert store.load_quiz_state() is None
    assert store.get("quizState") is None


def test_finished_snapshot_is_discarded(store):
    store.set_consent(True)
    store.save_quiz_state(make_snapshot(status="completed"))
    assert store.load_quiz_state() is None


def test_unreadable_snapshot_is_discarded(store):
    store.set_consent(True)
    store.set("quizState", {"quizStatus": "in-progress", "timestamp": store.clock()})
    assert store.load_quiz_state() is None
    assert store.get("quizState") is None


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    store = LocalStore(path=path)
    assert store.get_consent() is None
    store.set_consent(True)
    assert json.loads(path.read_text(encoding="utf-8"))["cookieConsent"] == "accepted"


def test_session_tokens(store):
    store.set_session_token("user-token")
    store.set_admin_session_token("admin-token")
    assert store.get_session_token() == "user-token"
    assert store.get_admin_session_token() == "admin-token"
    store.set_session_token(None)
    assert store.get_session_token() is None
    assert store.get_admin_session_token() == "admin-token"
