"""Study session state machine.

Every transition is a pure function ``(state, ...) -> state``. The runner
(``study_helper.services.session_runner``) and the bot handlers only ever
replace the state value they hold with the one returned here.

    concepts --advance--> practice --next at last--> review
        ^                                               |
        +------------------ review again ---------------+

Once a session is ended every event is ignored, which also makes a late
content generation result a no-op.
"""
import math
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Mapping, Union

from study_helper.session.exceptions import InvalidTransitionError
from study_helper.session.models import (
    Phase,
    SessionParameters,
    SessionState,
    StudyContent,
)

SCORE_DENOMINATORS = ("total", "scored")


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True)
class ContentLoaded:
    content: StudyContent


@dataclass(frozen=True)
class ContentFailed:
    message: str = "Failed to generate study content"


@dataclass(frozen=True)
class RetryGeneration:
    pass


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class SubmitAnswer:
    question_id: str
    answer: str


@dataclass(frozen=True)
class NextQuestion:
    pass


@dataclass(frozen=True)
class PreviousQuestion:
    pass


@dataclass(frozen=True)
class ReviewAgain:
    pass


@dataclass(frozen=True)
class EndSession:
    pass


Event = Union[
    ContentLoaded, ContentFailed, RetryGeneration, Advance, SubmitAnswer,
    NextQuestion, PreviousQuestion, ReviewAgain, EndSession,
]


# ============================================================================
# TRANSITIONS
# ============================================================================

def start_session(params: SessionParameters, now: float) -> SessionState:
    """New session: concepts phase, waiting for content, no answers."""
    return SessionState(params=params, started_at=now)


def content_loaded(state: SessionState, content: StudyContent) -> SessionState:
    if state.ended:
        return state
    if not state.loading:
        raise InvalidTransitionError("Content arrived while no generation was pending")
    return replace(
        state,
        content=content,
        loading=False,
        content_error=None,
        phase=Phase.CONCEPTS,
        current_question_index=0,
        explanation_visible=False,
    )


def content_failed(state: SessionState, message: str = "Failed to generate study content") -> SessionState:
    if state.ended:
        return state
    if not state.loading:
        raise InvalidTransitionError("Generation failure reported while nothing was pending")
    return replace(state, loading=False, content=None, content_error=message)


def retry_generation(state: SessionState) -> SessionState:
    if state.ended:
        return state
    if not state.content_unavailable:
        raise InvalidTransitionError("Retry is only possible when content is unavailable")
    return replace(state, loading=True, content_error=None)


def advance(state: SessionState) -> SessionState:
    """concepts -> practice, starting from the first question."""
    if state.ended:
        return state
    _require_content(state)
    _require_phase(state, Phase.CONCEPTS)
    return replace(
        state,
        phase=Phase.PRACTICE,
        current_question_index=0,
        explanation_visible=False,
    )


def submit_answer(state: SessionState, question_id: str, answer: str) -> SessionState:
    """Record the answer for the current question and show its explanation."""
    if state.ended:
        return state
    _require_content(state)
    _require_phase(state, Phase.PRACTICE)

    question = state.current_question
    if question.id != question_id:
        raise InvalidTransitionError(
            f"Question {question_id!r} is not the current question ({question.id!r})"
        )
    if question.has_options:
        if state.explanation_visible:
            raise InvalidTransitionError(f"Question {question_id!r} is already answered")
        if answer not in question.options:
            raise InvalidTransitionError(f"{answer!r} is not an option of question {question_id!r}")

    answers = dict(state.answers)
    answers[question_id] = answer
    return replace(
        state,
        answers=MappingProxyType(answers),
        explanation_visible=True,
    )


def next_question(state: SessionState) -> SessionState:
    """Move to the next question, or to review from the last one."""
    if state.ended:
        return state
    _require_content(state)
    _require_phase(state, Phase.PRACTICE)

    if state.is_last_question:
        return replace(state, phase=Phase.REVIEW, reached_review=True)
    return replace(
        state,
        current_question_index=state.current_question_index + 1,
        explanation_visible=False,
    )


def previous_question(state: SessionState) -> SessionState:
    """Move back one question. No-op on the first question."""
    if state.ended:
        return state
    _require_content(state)
    _require_phase(state, Phase.PRACTICE)

    if state.current_question_index == 0:
        return state
    return replace(
        state,
        current_question_index=state.current_question_index - 1,
        explanation_visible=False,
    )


def review_again(state: SessionState) -> SessionState:
    """review -> concepts. Answers and start time are kept."""
    if state.ended:
        return state
    _require_phase(state, Phase.REVIEW)
    return replace(
        state,
        phase=Phase.CONCEPTS,
        current_question_index=0,
        explanation_visible=False,
    )


def end_session(state: SessionState) -> SessionState:
    return replace(state, ended=True)


def apply(state: SessionState, event: Event) -> SessionState:
    """Dispatch an event object to its transition."""
    if isinstance(event, ContentLoaded):
        return content_loaded(state, event.content)
    if isinstance(event, ContentFailed):
        return content_failed(state, event.message)
    if isinstance(event, RetryGeneration):
        return retry_generation(state)
    if isinstance(event, Advance):
        return advance(state)
    if isinstance(event, SubmitAnswer):
        return submit_answer(state, event.question_id, event.answer)
    if isinstance(event, NextQuestion):
        return next_question(state)
    if isinstance(event, PreviousQuestion):
        return previous_question(state)
    if isinstance(event, ReviewAgain):
        return review_again(state)
    if isinstance(event, EndSession):
        return end_session(state)
    raise InvalidTransitionError(f"Unknown event: {event!r}")


def _require_content(state: SessionState) -> None:
    if state.content is None:
        raise InvalidTransitionError("Study content is not loaded")


def _require_phase(state: SessionState, phase: Phase) -> None:
    if state.phase != phase:
        raise InvalidTransitionError(
            f"Expected phase {phase.value!r}, session is in {state.phase.value!r}"
        )


# ============================================================================
# SCORE AND TIME
# ============================================================================

def count_correct(content: StudyContent, answers: Mapping[str, str]) -> int:
    """Questions with an answer key whose recorded answer matches it exactly."""
    return sum(
        1 for q in content.questions
        if q.correct_answer is not None and answers.get(q.id) == q.correct_answer
    )


def calculate_score(
    content: StudyContent,
    answers: Mapping[str, str],
    denominator: str = "total",
) -> int:
    """Percentage of correct answers, rounded half up.

    ``total`` divides by every question, open-ended ones included, so a
    session with open-ended questions can never reach 100. ``scored``
    divides only by questions that have an answer key.
    """
    if denominator not in SCORE_DENOMINATORS:
        raise ValueError(f"Unknown score denominator: {denominator!r}")

    if denominator == "total":
        total = len(content.questions)
    else:
        total = sum(1 for q in content.questions if q.correct_answer is not None)

    if total == 0:
        return 0
    return math.floor(100 * count_correct(content, answers) / total + 0.5)


def elapsed_seconds(state: SessionState, now: float) -> float:
    return max(0.0, now - state.started_at)


def format_duration(seconds: float) -> str:
    """Format as M:SS, e.g. 125 -> '2:05'."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"
