import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from aiquiz.core.exceptions import ConfigurationError, LLMError, RateLimitExceededError
from aiquiz.utils.explanation_service import FALLBACK_EXPLANATION, ExplanationService
from aiquiz.utils.quota import AnonymousQuota, SlidingWindowLimiter


class CountingQuota:
    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    def acquire(self):
        if self.error is not None:
            raise self.error
        self.calls += 1


def explain(service):
    return service.explain(
        question="Which activation outputs values between 0 and 1?",
        user_answer="ReLU",
        correct_answer="Sigmoid",
        topic="Neural Networks",
        basic_explanation="Sigmoid squashes inputs into (0, 1).",
    )


def test_returns_model_text_and_charges_quota():
    quota = CountingQuota()
    service = ExplanationService(
        quota, llm=FakeListChatModel(responses=["  Sigmoid maps any input into (0, 1).\n"])
    )
    assert explain(service) == "Sigmoid maps any input into (0, 1)."
    assert quota.calls == 1


def test_prompt_carries_question_details():
    seen = []

    def fake_model(prompt_value):
        seen.extend(prompt_value.to_messages())
        return AIMessage(content="Because.")

    service = ExplanationService(CountingQuota(), llm=RunnableLambda(fake_model))
    explain(service)

    system, user = seen
    assert "expert tutor" in system.content
    assert "**Topic:** Neural Networks" in user.content
    assert "**My Answer:** ReLU" in user.content
    assert "**Correct Answer:** Sigmoid" in user.content
    assert "**Basic Explanation:** Sigmoid squashes inputs into (0, 1)." in user.content


def test_empty_answer_falls_back():
    service = ExplanationService(
        CountingQuota(), llm=RunnableLambda(lambda _: AIMessage(content="   "))
    )
    assert explain(service) == FALLBACK_EXPLANATION


def test_model_failure_still_uses_a_call():
    def broken(_):
        raise RuntimeError("upstream timeout")

    quota = CountingQuota()
    service = ExplanationService(quota, llm=RunnableLambda(broken))
    with pytest.raises(LLMError, match="upstream timeout"):
        explain(service)
    assert quota.calls == 1


def test_not_configured_does_not_charge():
    quota = CountingQuota()
    service = ExplanationService(quota)
    assert service.is_configured() is False
    with pytest.raises(ConfigurationError):
        explain(service)
    assert quota.calls == 0


def test_exhausted_quota_skips_the_model(mono_clock):
    invoked = []

    def fake_model(_):
        invoked.append(True)
        return AIMessage(content="ok")

    quota = AnonymousQuota(SlidingWindowLimiter(1, 60, clock=mono_clock))
    service = ExplanationService(quota, llm=RunnableLambda(fake_model))
    explain(service)
    with pytest.raises(RateLimitExceededError):
        explain(service)
    assert len(invoked) == 1
