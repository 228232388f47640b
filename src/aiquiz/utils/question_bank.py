"""Question bank loading."""

import json
import logging
from pathlib import Path
from typing import List

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from aiquiz.config import QUESTION_BANK_PATH
from aiquiz.core.exceptions import ConfigurationError
from aiquiz.schemas.quiz import Question

logger = logging.getLogger(__name__)

_QUESTION_LIST = TypeAdapter(List[Question])


def load_questions(path: Path = QUESTION_BANK_PATH) -> List[Question]:
    """Load and validate a question bank from a JSON file.

    Args:
        path: JSON file holding a list of questions.

    Returns:
        The validated questions in file order.

    Raises:
        ConfigurationError: If the file is missing, unreadable, empty or a
            question is malformed.
    """
    if not path.exists():
        raise ConfigurationError(f"Question bank not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        questions = _QUESTION_LIST.validate_python(raw)
    except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
        raise ConfigurationError(f"Invalid question bank {path}: {e}") from e

    if not questions:
        raise ConfigurationError(f"Question bank is empty: {path}")

    logger.info("Loaded %d questions from %s", len(questions), path)
    return questions
