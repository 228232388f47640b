import random

from langchain_core.language_models.fake_chat_models import FakeListChatModel

from aiquiz import main
from aiquiz.core.exceptions import ApiError
from aiquiz.schemas.quiz import Question
from aiquiz.utils.explanation_service import ExplanationService
from aiquiz.utils.quiz_engine import QuizMode, QuizSession
from aiquiz.utils.quota import RegisteredQuota


class UnreachableUserAPI:
    def get_daily_calls(self):
        raise ApiError("Could not reach the server")

    def record_call(self):
        raise ApiError("Could not reach the server")


def learn_quiz_with_wrong_answer(mono_clock):
    bank = [Question(id=1, question="2 + 2?", options=["3", "4"], correct="4")]
    quiz = QuizSession(bank, rng=random.Random(1), clock=mono_clock)
    quiz.start(QuizMode.LEARN, 1)
    quiz.select_answer("3")
    return quiz


def test_explain_reports_unreachable_server(mono_clock, capsys):
    quiz = learn_quiz_with_wrong_answer(mono_clock)
    explainer = ExplanationService(
        RegisteredQuota(UnreachableUserAPI()),
        llm=FakeListChatModel(responses=["unused"]),
    )

    main.explain_current(quiz, explainer)

    assert "Could not reach the server" in capsys.readouterr().out


def test_explain_prints_explanation(mono_clock, capsys):
    quiz = learn_quiz_with_wrong_answer(mono_clock)
    explainer = ExplanationService(
        main.AnonymousQuota(), llm=FakeListChatModel(responses=["Four is 2 + 2."])
    )

    main.explain_current(quiz, explainer)

    out = capsys.readouterr().out
    assert "10 calls left" in out
    assert "Four is 2 + 2." in out
