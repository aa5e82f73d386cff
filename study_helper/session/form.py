"""Validation of the study form: topic, difficulty and focus."""
from typing import Optional

from study_helper.config import MIN_TOPIC_LENGTH
from study_helper.session.exceptions import FormValidationError
from study_helper.session.models import Difficulty, Focus, SessionParameters

DEFAULT_DIFFICULTY = Difficulty.BEGINNER
DEFAULT_FOCUS = Focus.CONCEPTS


def validate_topic(raw: Optional[str]) -> str:
    """Return the stripped topic or raise FormValidationError."""
    topic = (raw or "").strip()
    if not topic:
        raise FormValidationError("topic", "Topic is required")
    if len(topic) < MIN_TOPIC_LENGTH:
        raise FormValidationError(
            "topic", f"Topic must be at least {MIN_TOPIC_LENGTH} characters"
        )
    return topic


def parse_difficulty(value: Optional[str]) -> Difficulty:
    # The select always has a value; an empty one means the default option
    if isinstance(value, Difficulty):
        return value
    if value is None or not str(value).strip():
        return DEFAULT_DIFFICULTY
    try:
        return Difficulty(str(value).strip().lower())
    except ValueError:
        raise FormValidationError("difficulty", f"Unknown difficulty: {value}") from None


def parse_focus(value: Optional[str]) -> Focus:
    if isinstance(value, Focus):
        return value
    if value is None or not str(value).strip():
        return DEFAULT_FOCUS
    try:
        return Focus(str(value).strip().lower())
    except ValueError:
        raise FormValidationError("focus", f"Unknown focus area: {value}") from None


def build_session_parameters(
    topic: Optional[str],
    difficulty: Optional[str] = None,
    focus: Optional[str] = None,
) -> SessionParameters:
    """Validate the whole form. The first invalid field is raised."""
    return SessionParameters(
        topic=validate_topic(topic),
        difficulty=parse_difficulty(difficulty),
        focus=parse_focus(focus),
    )
