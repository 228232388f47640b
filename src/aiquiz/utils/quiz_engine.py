"""Quiz state machine.

A quiz moves from setup to in-progress to completed. Exiting an in-progress
quiz or restarting a completed one goes back to setup.

Two modes are supported:
- exam: a countdown runs for the whole quiz, answers can be changed freely and
  correctness is only revealed in the results. Submitting, or the countdown
  reaching zero, completes the quiz.
- learn: no countdown. The first answer to a question is final and its
  feedback is shown straight away. Moving on requires that feedback, and
  moving on from the last question completes the quiz.

The countdown is a monotonic deadline, so the remaining time is always
derived from the clock instead of being decremented per tick.
"""

import logging
import math
import random
import time
from enum import Enum
from typing import Callable, List, Optional, Sequence

from aiquiz.config import (
    DEFAULT_QUESTION_COUNT,
    MAX_QUESTIONS,
    QUESTIONS_PER_TIME_BLOCK,
    SECONDS_PER_TIME_BLOCK,
)
from aiquiz.core.exceptions import QuizStateError, ValidationError
from aiquiz.schemas.quiz import (
    AnswerResult,
    Question,
    QuestionResult,
    QuizResult,
    QuizSnapshot,
)
from aiquiz.utils.local_store import LocalStore

logger = logging.getLogger(__name__)

TIMER_WARNING_SECONDS = 60
TIMER_CRITICAL_SECONDS = 30

GRADE_THRESHOLDS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


class QuizStatus(str, Enum):
    SETUP = "setup"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class QuizMode(str, Enum):
    LEARN = "learn"
    EXAM = "exam"


def calculate_time_limit(question_count: int) -> int:
    """Time limit in seconds: 10 minutes per 20 questions, rounded up."""
    return -(-question_count * SECONDS_PER_TIME_BLOCK // QUESTIONS_PER_TIME_BLOCK)


def shuffle(items: Sequence, rng: Optional[random.Random] = None) -> list:
    """Return a Fisher-Yates shuffled copy of `items`."""
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def grade_for(percentage: int) -> str:
    for threshold, letter in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return letter
    return "F"


def format_time(seconds: int) -> str:
    """Countdown display: `m:ss`, or `h:mm:ss` from one hour up."""
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_duration(seconds: int) -> str:
    """Results display, e.g. `4m 12s`."""
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def timer_level(remaining: int) -> str:
    """Return "critical", "warning" or "normal" for the countdown display."""
    if 0 < remaining <= TIMER_CRITICAL_SECONDS:
        return "critical"
    if 0 < remaining <= TIMER_WARNING_SECONDS:
        return "warning"
    return "normal"


class CountdownTimer:
    """Countdown backed by a deadline on a monotonic clock."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._remaining = max(0.0, float(seconds))
        self._deadline: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._deadline is not None

    def start(self) -> None:
        if self._deadline is None:
            self._deadline = self.clock() + self._remaining

    def stop(self) -> None:
        if self._deadline is not None:
            self._remaining = max(0.0, self._deadline - self.clock())
            self._deadline = None

    def remaining(self) -> int:
        """Whole seconds left, rounded up so a fresh timer shows its full length."""
        left = self._deadline - self.clock() if self._deadline is not None else self._remaining
        return max(0, math.ceil(left))

    @property
    def expired(self) -> bool:
        return self.remaining() == 0


class QuizSession:
    """One quiz from setup to results.

    Every change while the quiz is in progress is saved through the local
    store, which itself decides whether saving is allowed.
    """

    def __init__(
        self,
        question_bank: Sequence[Question],
        store: Optional[LocalStore] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize QuizSession.

        Args:
            question_bank: All available questions.
            store: Where in-progress snapshots are saved, or None.
            rng: Random source for question and option order.
            clock: Monotonic clock in seconds for the countdown and learn
                mode elapsed time.
        """
        self.question_bank = list(question_bank)
        self.store = store
        self.rng = rng or random.Random()
        self.clock = clock
        self.selected_question_count = min(DEFAULT_QUESTION_COUNT, self.max_questions)
        self._reset()

    def _reset(self) -> None:
        self.status = QuizStatus.SETUP
        self.mode = QuizMode.EXAM
        self.current_index = 0
        self.questions: List[Question] = []
        self.user_answers: List[Optional[str]] = []
        self.answer_results: List[AnswerResult] = []
        self.time_taken = 0
        self.timer: Optional[CountdownTimer] = None
        self._elapsed_before = 0.0
        self._started_at: Optional[float] = None
        self._last_saved_remaining: Optional[int] = None

    # --- Read-only views ---

    @property
    def max_questions(self) -> int:
        return min(MAX_QUESTIONS, len(self.question_bank))

    @property
    def time_limit(self) -> int:
        return calculate_time_limit(len(self.questions))

    @property
    def time_remaining(self) -> int:
        return self.timer.remaining() if self.timer else 0

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def is_first(self) -> bool:
        return self.current_index == 0

    @property
    def is_last(self) -> bool:
        return self.current_index == len(self.questions) - 1

    @property
    def show_feedback(self) -> bool:
        """True when learn-mode feedback is showing for the current question."""
        return (
            self.mode == QuizMode.LEARN
            and self.status == QuizStatus.IN_PROGRESS
            and bool(self.answer_results)
            and self.answer_results[self.current_index].answered
        )

    @property
    def answered_count(self) -> int:
        return sum(1 for answer in self.user_answers if answer is not None)

    @property
    def all_answered(self) -> bool:
        return bool(self.user_answers) and self.answered_count == len(self.user_answers)

    # --- Setup ---

    def set_question_count(self, count: int) -> int:
        """Set the question count, clamped to [1, max_questions]."""
        self.selected_question_count = max(1, min(int(count), self.max_questions))
        return self.selected_question_count

    def start(self, mode: QuizMode = QuizMode.EXAM, question_count: Optional[int] = None) -> None:
        """Draw the questions and begin the quiz.

        Args:
            mode: Exam or learn mode.
            question_count: Overrides the selected count; clamped to the bank.

        Raises:
            QuizStateError: If the quiz is not in setup or the bank is empty.
        """
        if self.status != QuizStatus.SETUP:
            raise QuizStateError("A quiz can only be started from setup")
        if self.max_questions == 0:
            raise QuizStateError("The question bank is empty")
        if question_count is not None:
            self.set_question_count(question_count)

        count = min(self.selected_question_count, self.max_questions)
        picked = shuffle(self.question_bank, self.rng)[:count]

        self.mode = QuizMode(mode)
        self.questions = [
            q.model_copy(update={"options": shuffle(q.options, self.rng)}) for q in picked
        ]
        self.user_answers = [None] * count
        self.answer_results = [AnswerResult() for _ in range(count)]
        self.current_index = 0
        self.time_taken = 0
        self.timer = CountdownTimer(self.time_limit, self.clock)
        if self.mode == QuizMode.EXAM:
            self.timer.start()
        self._elapsed_before = 0.0
        self._started_at = self.clock()
        self.status = QuizStatus.IN_PROGRESS

        logger.info("Started %s quiz with %d questions", self.mode.value, count)
        self._autosave()

    # --- In progress ---

    def select_answer(self, answer: str) -> bool:
        """Record an answer for the current question.

        Returns:
            False when the answer is ignored (learn mode, already answered).

        Raises:
            QuizStateError: If the quiz is not in progress.
            ValidationError: If `answer` is not one of the options.
        """
        self._require_in_progress()
        question = self.current_question
        if answer not in question.options:
            raise ValidationError(f"Not an option for this question: {answer}")

        i = self.current_index
        if self.mode == QuizMode.LEARN:
            if self.answer_results[i].answered:
                return False
            self.user_answers[i] = answer
            self.answer_results[i] = AnswerResult(answered=True, correct=answer == question.correct)
        else:
            self.user_answers[i] = answer

        self._autosave()
        return True

    def next_question(self) -> bool:
        """Move forward.

        In learn mode this needs the current question's feedback, and on the
        last question it completes the quiz.

        Returns:
            True if the position or status changed.
        """
        self._require_in_progress()
        if self.mode == QuizMode.LEARN:
            if not self.show_feedback:
                return False
            if self.is_last:
                self._complete(self._elapsed_seconds())
                return True

        if self.is_last:
            return False
        self.current_index += 1
        self._autosave()
        return True

    def previous_question(self) -> bool:
        self._require_in_progress()
        if self.is_first:
            return False
        self.current_index -= 1
        self._autosave()
        return True

    def submit(self) -> None:
        """Complete the quiz on the user's (confirmed) request."""
        self._require_in_progress()
        if self.mode == QuizMode.EXAM:
            self._complete(self.time_limit - self.time_remaining)
        else:
            self._complete(self._elapsed_seconds())

    def tick(self) -> int:
        """Refresh the countdown; completes an exam whose time is up.

        Returns:
            Seconds remaining.
        """
        if self.status != QuizStatus.IN_PROGRESS:
            return self.time_remaining
        if self._check_expired():
            return 0
        remaining = self.time_remaining
        if self.mode == QuizMode.EXAM and remaining != self._last_saved_remaining:
            self._autosave()
        return remaining

    def exit(self) -> None:
        """Abandon an in-progress quiz and discard its snapshot."""
        if self.status != QuizStatus.IN_PROGRESS:
            raise QuizStateError("No quiz in progress")
        self._clear_snapshot()
        self._reset()
        logger.info("Quiz exited")

    def restart(self) -> None:
        """Go back to setup after the results."""
        if self.status != QuizStatus.COMPLETED:
            raise QuizStateError("Only a completed quiz can be restarted")
        self._clear_snapshot()
        self._reset()

    # --- Results ---

    def results(self) -> QuizResult:
        """Score the answers given so far."""
        if not self.questions:
            raise QuizStateError("No quiz to score")

        question_results = []
        correct = unanswered = 0
        for number, (question, answer) in enumerate(zip(self.questions, self.user_answers), 1):
            is_correct = answer == question.correct
            if is_correct:
                correct += 1
            elif answer is None:
                unanswered += 1
            question_results.append(
                QuestionResult(
                    question_number=number,
                    question=question,
                    user_answer=answer,
                    is_correct=is_correct,
                )
            )

        total = len(self.questions)
        # Half-up rounding
        percentage = math.floor(100 * correct / total + 0.5)
        return QuizResult(
            correct=correct,
            incorrect=total - correct - unanswered,
            unanswered=unanswered,
            total=total,
            percentage=percentage,
            grade=grade_for(percentage),
            time_taken=self.time_taken,
            question_results=question_results,
        )

    # --- Snapshots ---

    def to_snapshot(self) -> QuizSnapshot:
        if self.status == QuizStatus.IN_PROGRESS and self.mode == QuizMode.LEARN:
            time_taken = self._elapsed_seconds()
        else:
            time_taken = self.time_taken
        return QuizSnapshot(
            quiz_status=self.status.value,
            quiz_mode=self.mode.value,
            selected_question_count=self.selected_question_count,
            current_question_index=self.current_index,
            selected_questions=list(self.questions),
            user_answers=list(self.user_answers),
            time_remaining=self.time_remaining,
            time_taken=time_taken,
            answer_results=list(self.answer_results),
        )

    def resume(self, snapshot: QuizSnapshot) -> None:
        """Continue an in-progress quiz from a saved snapshot.

        The countdown carries on from the saved remaining time.

        Raises:
            QuizStateError: If the snapshot is not of an in-progress quiz
                or holds no questions.
        """
        if snapshot.quiz_status != QuizStatus.IN_PROGRESS.value or not snapshot.selected_questions:
            raise QuizStateError("Snapshot is not of a quiz in progress")

        count = len(snapshot.selected_questions)
        answers = list(snapshot.user_answers)[:count]
        results = list(snapshot.answer_results)[:count]

        self._reset()
        self.mode = QuizMode(snapshot.quiz_mode)
        self.selected_question_count = snapshot.selected_question_count
        self.questions = list(snapshot.selected_questions)
        self.user_answers = answers + [None] * (count - len(answers))
        self.answer_results = results + [AnswerResult() for _ in range(count - len(results))]
        self.current_index = max(0, min(snapshot.current_question_index, count - 1))
        self.timer = CountdownTimer(snapshot.time_remaining, self.clock)
        if self.mode == QuizMode.EXAM:
            self.timer.start()
        else:
            self._elapsed_before = float(snapshot.time_taken)
        self._started_at = self.clock()
        self.status = QuizStatus.IN_PROGRESS
        logger.info("Resumed %s quiz at question %d", self.mode.value, self.current_index + 1)
        self._check_expired()

    # --- Helpers ---

    def _require_in_progress(self) -> None:
        self._check_expired()
        if self.status != QuizStatus.IN_PROGRESS:
            raise QuizStateError("No quiz in progress")

    def _check_expired(self) -> bool:
        if (
            self.status == QuizStatus.IN_PROGRESS
            and self.mode == QuizMode.EXAM
            and self.timer is not None
            and self.timer.expired
        ):
            logger.info("Time expired")
            self._complete(self.time_limit)
            return True
        return False

    def _elapsed_seconds(self) -> int:
        if self._started_at is None:
            return int(self._elapsed_before)
        return int(self._elapsed_before + (self.clock() - self._started_at))

    def _complete(self, time_taken: int) -> None:
        if self.timer is not None:
            self.timer.stop()
        self.time_taken = max(0, int(time_taken))
        self.status = QuizStatus.COMPLETED
        self._clear_snapshot()
        logger.info("Quiz completed in %d seconds", self.time_taken)

    def _autosave(self) -> None:
        if self.store is None or self.status != QuizStatus.IN_PROGRESS:
            return
        self.store.save_quiz_state(self.to_snapshot())
        self._last_saved_remaining = self.time_remaining

    def _clear_snapshot(self) -> None:
        if self.store is not None:
            self.store.clear_quiz_state()
