"""Quiz schema definitions.

This module defines the question model, per-question results and the
serialised quiz snapshot kept in local storage.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Question(BaseModel):
    """A multiple-choice question from the question bank."""

    id: Union[int, str]
    question: str = Field(description="Prompt text.")
    options: List[str] = Field(description="Answer options, shuffled per quiz.")
    correct: str = Field(description="The correct option text.")
    topic: Optional[str] = None
    explanation: Optional[str] = Field(
        default=None, description="Basic explanation shown after answering."
    )

    @model_validator(mode="after")
    def check_correct_is_option(self):
        if self.correct not in self.options:
            raise ValueError(f"question {self.id}: correct answer is not an option")
        return self


class AnswerResult(BaseModel):
    """Learn-mode feedback for one question."""

    answered: bool = False
    correct: Optional[bool] = None


class QuestionResult(BaseModel):
    question_number: int
    question: Question
    user_answer: Optional[str] = None
    is_correct: bool


class QuizResult(BaseModel):
    correct: int
    incorrect: int
    unanswered: int
    total: int
    percentage: int
    grade: str
    time_taken: int
    question_results: List[QuestionResult]


class QuizSnapshot(BaseModel):
    """In-progress quiz state as stored under the `quizState` key."""

    model_config = ConfigDict(populate_by_name=True)

    quiz_status: str = Field(alias="quizStatus")
    quiz_mode: str = Field(alias="quizMode")
    selected_question_count: int = Field(alias="selectedQuestionCount")
    current_question_index: int = Field(alias="currentQuestionIndex")
    selected_questions: List[Question] = Field(alias="selectedQuestions")
    user_answers: List[Optional[str]] = Field(alias="userAnswers")
    time_remaining: int = Field(alias="timeRemaining")
    time_taken: int = Field(default=0, alias="timeTaken")
    answer_results: List[AnswerResult] = Field(default_factory=list, alias="answerResults")
    timestamp: Optional[float] = None
