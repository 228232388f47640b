"""In-depth AI explanations for wrongly answered questions."""

import logging
from typing import Any, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from aiquiz.config import DEFAULT_LLM_PROVIDER
from aiquiz.core.exceptions import ConfigurationError, LLMError
from aiquiz.utils.llm_manager import get_llm, is_llm_configured
from aiquiz.utils.quota import Quota

logger = logging.getLogger(__name__)

FALLBACK_EXPLANATION = "Unable to generate explanation."

SYSTEM_PROMPT = (
    "You are an expert tutor helping students understand quiz questions they got wrong. \n"
    "Your explanations should be:\n"
    "- Clear and educational\n"
    "- Include relevant examples or analogies\n"
    "- Break down complex concepts into simpler parts\n"
    "- Mention common misconceptions if relevant\n"
    "- Keep responses concise but thorough (2-4 paragraphs max)\n\n"
    "Format your response in a friendly, encouraging tone."
)

USER_PROMPT = (
    "I got this question wrong and need help understanding it better:\n\n"
    "**Topic:** {topic}\n\n"
    "**Question:** {question}\n\n"
    "**My Answer:** {user_answer}\n\n"
    "**Correct Answer:** {correct_answer}\n\n"
    "**Basic Explanation:** {basic_explanation}\n\n"
    "Please give me a more in-depth explanation to help me truly understand this "
    "concept. Why is the correct answer right, and why might someone choose my "
    "wrong answer?"
)


class ExplanationService:
    """Asks the LLM to explain a question, charging the caller's quota first."""

    def __init__(
        self,
        quota: Quota,
        llm: Optional[Any] = None,
        provider: str = DEFAULT_LLM_PROVIDER,
    ):
        """Initialize ExplanationService.

        Args:
            quota: Quota charged once per explanation request.
            llm: Chat model; created from the provider config on first use
                when omitted.
            provider: Key of LLM_PROVIDERS used when `llm` is omitted.
        """
        self.quota = quota
        self.provider = provider
        self._llm = llm
        self._chain = None
        self.prompt = ChatPromptTemplate.from_messages(
            [
                ("system", SYSTEM_PROMPT),
                ("user", USER_PROMPT),
            ]
        )

    def is_configured(self) -> bool:
        return self._llm is not None or is_llm_configured(self.provider)

    @property
    def chain(self):
        if self._chain is None:
            llm = self._llm if self._llm is not None else get_llm(self.provider)
            self._chain = self.prompt | llm | StrOutputParser()
        return self._chain

    def explain(
        self,
        question: str,
        user_answer: str,
        correct_answer: str,
        topic: Optional[str] = None,
        basic_explanation: Optional[str] = None,
    ) -> str:
        """Get an in-depth explanation.

        The call is counted against the quota before the model is asked, so a
        failed request still uses up a call.

        Raises:
            ConfigurationError: If no API key is configured.
            RateLimitExceededError: If the anonymous window is full.
            DailyLimitExceededError: If today's calls are used up.
            LLMError: If the model request fails.
        """
        if not self.is_configured():
            raise ConfigurationError(
                "OpenAI API key not configured. Please add your API key to the .env file."
            )

        chain = self.chain
        self.quota.acquire()

        try:
            text = chain.invoke(
                {
                    "topic": topic or "",
                    "question": question,
                    "user_answer": user_answer,
                    "correct_answer": correct_answer,
                    "basic_explanation": basic_explanation or "",
                }
            )
        except Exception as e:
            logger.error("LLM explanation request failed: %s", e)
            raise LLMError(str(e)) from e

        return (text or "").strip() or FALLBACK_EXPLANATION
