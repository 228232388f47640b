"""Interactive terminal quiz.

This module provides the command-line front end: storage consent, resuming a
saved quiz, optional user login for a daily AI quota, quiz setup, the question
loop with its countdown and the results screen.
"""

import logging
from typing import Optional

from aiquiz.config import API_BASE_URL, QUESTION_BANK_PATH
from aiquiz.core.exceptions import AIQuizError, ApiError, QuizStateError
from aiquiz.core.logging_config import setup_logging
from aiquiz.schemas.quiz import QuizResult
from aiquiz.utils.api_client import ApiClient, UserAPI, get_current_user
from aiquiz.utils.explanation_service import ExplanationService
from aiquiz.utils.local_store import LocalStore
from aiquiz.utils.question_bank import load_questions
from aiquiz.utils.quiz_engine import (
    QuizMode,
    QuizSession,
    QuizStatus,
    calculate_time_limit,
    format_duration,
    format_time,
    timer_level,
)
from aiquiz.utils.quota import AnonymousQuota, select_quota

logger = logging.getLogger(__name__)

TIMER_MARKERS = {"normal": "⏱", "warning": "⚠️", "critical": "🔥"}


def print_banner() -> None:
    """Print program banner and description."""
    print("=" * 70)
    print("  AI Quiz")
    print("  Test your knowledge with an interactive quiz")
    print("=" * 70)
    print()
    print("Modes:")
    print("  - Exam:  timed (10 minutes per 20 questions), results at the end")
    print("  - Learn: untimed, instant feedback and AI explanations")
    print()
    print("=" * 70)
    print()


def confirm(prompt: str) -> bool:
    return input(f"{prompt} [y/N]: ").strip().lower() in ("y", "yes")


def ask_consent(store: LocalStore) -> None:
    """Ask once whether quiz progress may be saved on this machine."""
    if store.get_consent() is not None:
        return
    print("💾 AI Quiz can save your progress so an interrupted quiz can be resumed.")
    store.set_consent(confirm("Allow saving progress locally?"))
    print()


def account_menu(user_api: UserAPI) -> Optional[dict]:
    """Log in, register or continue anonymously.

    Returns:
        The logged-in user's profile, or None.
    """
    user = get_current_user(user_api)
    if user:
        print(f"👤 Logged in as {user['username']} ({describe_ai_limit(user)})")
        if confirm("Log out?"):
            try:
                user_api.logout()
            except ApiError as e:
                logger.warning("Logout failed: %s", e)
            return None
        return user

    print("👤 Log in for a daily AI explanation allowance (anonymous: 10 per minute).")
    print("  [l] login   [r] register   [Enter] continue without an account")
    choice = input("Choice: ").strip().lower()
    if choice not in ("l", "r"):
        return None

    username = input("Username: ").strip()
    password = input("Password: ")
    pin = input("PIN (4 digits): ").strip()
    try:
        if choice == "r":
            email = input("Email (optional): ").strip() or None
            data = user_api.register(username, password, pin, email)
        else:
            data = user_api.login(username, password, pin)
    except ApiError as e:
        print(f"\n❌ {e}\n")
        return None

    user = data["user"]
    print(f"\n✅ Welcome, {user['username']} ({describe_ai_limit(user)})\n")
    return user


def describe_ai_limit(user: dict) -> str:
    if user.get("unlimitedAI"):
        return "∞ AI"
    return f"{user.get('dailyAILimit') or 10}/day AI"


def choose_setup(quiz: QuizSession) -> Optional[QuizMode]:
    """Ask for the question count and mode.

    Returns:
        The chosen mode, or None to quit.
    """
    print(f"\n📋 Quiz setup ({quiz.max_questions} questions available)")
    raw = input(f"Number of questions [{quiz.selected_question_count}]: ").strip()
    if raw.lower() in ("q", "quit"):
        return None
    if raw:
        try:
            quiz.set_question_count(int(raw))
        except ValueError:
            print("❌ Not a number; keeping the current count.")

    count = quiz.selected_question_count
    print(f"   {count} questions, exam time limit {format_time(calculate_time_limit(count))}")
    mode = input("Mode: [e] exam  [l] learn  [q] quit: ").strip().lower()
    if mode in ("q", "quit"):
        return None
    return QuizMode.LEARN if mode == "l" else QuizMode.EXAM


def print_question(quiz: QuizSession) -> None:
    question = quiz.current_question
    total = len(quiz.questions)
    print("\n" + "-" * 70)
    if quiz.mode == QuizMode.EXAM:
        remaining = quiz.time_remaining
        marker = TIMER_MARKERS[timer_level(remaining)]
        print(f"{marker} {format_time(remaining)}   ", end="")
    else:
        print("📚 Learn Mode   ", end="")
    print(f"Question {quiz.current_index + 1} of {total}   ({quiz.answered_count} answered)")
    if question.topic:
        print(f"[{question.topic}]")
    print(f"\n{question.question}\n")

    answer = quiz.user_answers[quiz.current_index]
    for number, option in enumerate(question.options, 1):
        mark = " "
        if quiz.show_feedback and option == question.correct:
            mark = "✓"
        elif quiz.show_feedback and option == answer:
            mark = "✗"
        elif option == answer:
            mark = "•"
        print(f"  {mark} [{number}] {option}")

    if quiz.show_feedback:
        result = quiz.answer_results[quiz.current_index]
        print("\n✅ Correct!" if result.correct else f"\n❌ Incorrect. Answer: {question.correct}")
        if question.explanation:
            print(f"   {question.explanation}")


def print_commands(quiz: QuizSession) -> None:
    commands = ["[1-9] answer", "[n] next", "[p] previous"]
    if quiz.mode == QuizMode.LEARN and quiz.show_feedback:
        result = quiz.answer_results[quiz.current_index]
        if not result.correct:
            commands.append("[e] AI explanation")
    commands += ["[s] submit", "[x] exit"]
    print("\n" + "   ".join(commands))


def explain_current(quiz: QuizSession, explainer: ExplanationService) -> None:
    question = quiz.current_question
    try:
        status = explainer.quota.status()
        if status.unlimited:
            print("\n🤖 Asking the AI tutor (unlimited)...")
        else:
            print(f"\n🤖 Asking the AI tutor ({status.remaining_calls} calls left)...")
        text = explainer.explain(
            question=question.question,
            user_answer=quiz.user_answers[quiz.current_index],
            correct_answer=question.correct,
            topic=question.topic,
            basic_explanation=question.explanation,
        )
    except AIQuizError as e:
        print(f"❌ {e}")
        return
    print("\n" + text)


def run_quiz(quiz: QuizSession, explainer: ExplanationService) -> None:
    """Question loop until the quiz is completed or exited."""
    while quiz.status == QuizStatus.IN_PROGRESS:
        print_question(quiz)
        print_commands(quiz)
        command = input("> ").strip().lower()

        quiz.tick()
        if quiz.status != QuizStatus.IN_PROGRESS:
            print("\n⏰ Time's up!")
            break

        try:
            if command.isdigit():
                options = quiz.current_question.options
                index = int(command) - 1
                if 0 <= index < len(options):
                    if not quiz.select_answer(options[index]):
                        print("🔒 This question is already answered.")
                else:
                    print("❌ No such option.")
            elif command == "n":
                if not quiz.next_question() and quiz.mode == QuizMode.LEARN:
                    print("💡 Answer the question first.")
            elif command == "p":
                quiz.previous_question()
            elif command == "e" and quiz.mode == QuizMode.LEARN and quiz.show_feedback:
                explain_current(quiz, explainer)
            elif command == "s":
                unanswered = len(quiz.questions) - quiz.answered_count
                warning = f" {unanswered} question(s) are unanswered." if unanswered else ""
                if confirm(f"Submit the quiz?{warning}"):
                    quiz.submit()
            elif command == "x":
                if confirm("Exit the quiz? Your progress will be lost."):
                    quiz.exit()
                    return
            else:
                print("❌ Invalid command, please try again.")
        except QuizStateError as e:
            print(f"❌ {e}")


def print_results(result: QuizResult) -> None:
    print("\n" + "=" * 70)
    print("🏁 Results")
    print("=" * 70)
    print(f"Score:      {result.percentage}%  (grade {result.grade})")
    print(f"Correct:    {result.correct}")
    print(f"Incorrect:  {result.incorrect}")
    print(f"Unanswered: {result.unanswered}")
    print(f"Time taken: {format_duration(result.time_taken)}")
    print("=" * 70)

    wrong = [r for r in result.question_results if not r.is_correct]
    if wrong:
        print("\nReview:")
        for r in wrong:
            print(f"\n  Q{r.question_number}. {r.question.question}")
            print(f"     Your answer: {r.user_answer or '(unanswered)'}")
            print(f"     Correct:     {r.question.correct}")
            if r.question.explanation:
                print(f"     {r.question.explanation}")
    print()


def interactive_quiz() -> None:
    """Interactive quiz workflow."""
    print_banner()

    store = LocalStore()
    ask_consent(store)

    try:
        questions = load_questions(QUESTION_BANK_PATH)
    except AIQuizError as e:
        logger.error(str(e))
        return

    user_api = UserAPI(ApiClient(store, API_BASE_URL))
    anonymous = AnonymousQuota()
    user = account_menu(user_api)
    explainer = ExplanationService(select_quota(user, anonymous, user_api))
    if not explainer.is_configured():
        print("⚠️  No LLM API key configured; AI explanations are unavailable.\n")

    quiz = QuizSession(questions, store=store)

    snapshot = store.load_quiz_state()
    if snapshot is not None and confirm(
        f"Resume your {snapshot.quiz_mode} quiz "
        f"(question {snapshot.current_question_index + 1} of {len(snapshot.selected_questions)})?"
    ):
        quiz.resume(snapshot)
    elif snapshot is not None:
        store.clear_quiz_state()

    while True:
        if quiz.status == QuizStatus.SETUP:
            mode = choose_setup(quiz)
            if mode is None:
                print("\nGoodbye!")
                return
            quiz.start(mode)

        if quiz.status == QuizStatus.IN_PROGRESS:
            run_quiz(quiz, explainer)

        if quiz.status == QuizStatus.COMPLETED:
            print_results(quiz.results())
            if not confirm("Take another quiz?"):
                print("\nGoodbye!")
                return
            quiz.restart()


def main() -> None:
    """Main entry point."""
    setup_logging("WARNING")
    try:
        interactive_quiz()
    except (KeyboardInterrupt, EOFError):
        print("\n\nQuiz interrupted. Saved progress (if allowed) can be resumed next time.")


if __name__ == "__main__":
    main()
