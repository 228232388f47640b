"""Local persistence for the quiz client.

A small JSON key/value file that plays the role of browser storage. It keeps
the storage consent decision, the in-progress quiz snapshot and the admin
and user session tokens.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from aiquiz.config import LOCAL_STORE_PATH, SNAPSHOT_MAX_AGE_SECONDS
from aiquiz.schemas.quiz import QuizSnapshot

logger = logging.getLogger(__name__)

COOKIE_CONSENT_KEY = "cookieConsent"
QUIZ_STATE_KEY = "quizState"
SESSION_TOKEN_KEY = "sessionToken"
ADMIN_SESSION_TOKEN_KEY = "adminSessionToken"

CONSENT_ACCEPTED = "accepted"
CONSENT_DECLINED = "declined"

IN_PROGRESS = "in-progress"


class LocalStore:
    """JSON-file backed key/value store.

    With `path=None` the store lives in memory only.
    """

    def __init__(
        self,
        path: Optional[Path] = LOCAL_STORE_PATH,
        clock: Callable[[], float] = time.time,
        max_age_seconds: int = SNAPSHOT_MAX_AGE_SECONDS,
    ):
        """Initialize LocalStore.

        Args:
            path: JSON file location, or None for an in-memory store.
            clock: Returns the current epoch time in seconds.
            max_age_seconds: Snapshots older than this are discarded on load.
        """
        self.path = Path(path) if path is not None else None
        self.clock = clock
        self.max_age_seconds = max_age_seconds
        self._data: Dict[str, Any] = self._read()

    # --- Raw key access ---

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._write()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._write()

    # --- Consent ---

    def get_consent(self) -> Optional[str]:
        """Return "accepted", "declined" or None when never asked."""
        return self.get(COOKIE_CONSENT_KEY)

    def has_consent(self) -> bool:
        return self.get_consent() == CONSENT_ACCEPTED

    def set_consent(self, accepted: bool) -> None:
        """Record the consent decision. Declining drops any saved quiz."""
        self.set(COOKIE_CONSENT_KEY, CONSENT_ACCEPTED if accepted else CONSENT_DECLINED)
        if not accepted:
            self.clear_quiz_state()

    # --- Quiz snapshot ---

    def save_quiz_state(self, snapshot: Union[QuizSnapshot, Dict[str, Any]]) -> bool:
        """Save a quiz snapshot, stamped with the current time.

        Args:
            snapshot: Snapshot model or its serialised form.

        Returns:
            False without consent (nothing is written), True otherwise.
        """
        if not self.has_consent():
            return False
        if isinstance(snapshot, QuizSnapshot):
            state = snapshot.model_dump(by_alias=True, mode="json")
        else:
            state = dict(snapshot)
        state["timestamp"] = self.clock()
        self.set(QUIZ_STATE_KEY, state)
        return True

    def load_quiz_state(self) -> Optional[QuizSnapshot]:
        """Load the saved snapshot if it can be resumed.

        Returns:
            The snapshot, or None without consent, when nothing is saved, when
            the quiz was not in progress, or when it is older than the max age.
            Stale and unreadable snapshots are removed.
        """
        if not self.has_consent():
            return None

        state = self.get(QUIZ_STATE_KEY)
        if not state:
            return None

        timestamp = state.get("timestamp")
        if timestamp is not None and self.clock() - timestamp >= self.max_age_seconds:
            logger.info("Discarding quiz snapshot older than %d seconds", self.max_age_seconds)
            self.clear_quiz_state()
            return None

        if state.get("quizStatus") != IN_PROGRESS:
            self.clear_quiz_state()
            return None

        try:
            return QuizSnapshot.model_validate(state)
        except PydanticValidationError as e:
            logger.warning("Discarding unreadable quiz snapshot: %s", e)
            self.clear_quiz_state()
            return None

    def clear_quiz_state(self) -> None:
        self.remove(QUIZ_STATE_KEY)

    # --- Session tokens ---

    def get_session_token(self) -> Optional[str]:
        return self.get(SESSION_TOKEN_KEY)

    def set_session_token(self, token: Optional[str]) -> None:
        if token:
            self.set(SESSION_TOKEN_KEY, token)
        else:
            self.remove(SESSION_TOKEN_KEY)

    def get_admin_session_token(self) -> Optional[str]:
        return self.get(ADMIN_SESSION_TOKEN_KEY)

    def set_admin_session_token(self, token: Optional[str]) -> None:
        if token:
            self.set(ADMIN_SESSION_TOKEN_KEY, token)
        else:
            self.remove(ADMIN_SESSION_TOKEN_KEY)

    # --- File I/O ---

    def _read(self) -> Dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading local store %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Ignoring local store %s: not a JSON object", self.path)
            return {}
        return data

    def _write(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
