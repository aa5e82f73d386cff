"""Drives one study session over the pure state machine."""
import logging
import time
import uuid
from typing import Callable, Optional

from study_helper.services.content_generator import ContentGenerator
from study_helper.session import machine
from study_helper.session.exceptions import ContentGenerationError
from study_helper.session.models import Phase, SessionParameters, SessionState

logger = logging.getLogger(__name__)


class SessionRunner:
    """
    Owns the state of one session and the call to the content generator.

    Args:
        params: validated form parameters
        generator: async callable returning StudyContent
        on_end: called once when the session is ended
        clock: returns the current time in seconds
        score_denominator: 'total' or 'scored', see machine.calculate_score
    """

    def __init__(
        self,
        params: SessionParameters,
        generator: ContentGenerator,
        on_end: Optional[Callable[["SessionRunner"], None]] = None,
        clock: Callable[[], float] = time.time,
        score_denominator: str = "total",
    ):
        self.params = params
        self._generator = generator
        self._on_end = on_end
        self._clock = clock
        self.score_denominator = score_denominator
        # Carried in callback data so buttons of an older session are rejected
        self.token = uuid.uuid4().hex[:8]
        self._state = machine.start_session(params, clock())
        # Bumped on every load so only the newest generation result is applied
        self._load_token = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def ended(self) -> bool:
        return self._state.ended

    async def load(self) -> SessionState:
        """Run content generation. Any generator error leaves the session retryable.

        Results arriving after end() or after a newer load() are dropped.
        """
        self._load_token += 1
        token = self._load_token
        logger.info("Generating study content for %r (%s, %s)",
                    self.params.topic, self.params.difficulty.value, self.params.focus.value)

        try:
            content = await self._generator(self.params)
        except ContentGenerationError as e:
            if self._is_stale(token):
                return self._state
            logger.warning("Content generation failed for %r: %s", self.params.topic, e)
            self._state = machine.content_failed(self._state, str(e))
            return self._state
        except Exception:
            if self._is_stale(token):
                return self._state
            logger.exception("Unexpected error while generating content for %r", self.params.topic)
            self._state = machine.content_failed(self._state)
            return self._state

        if self._is_stale(token):
            logger.info("Dropping stale study content for %r", self.params.topic)
            return self._state

        self._state = machine.content_loaded(self._state, content)
        logger.info("Study content ready: %d concepts, %d questions",
                    len(content.concepts), len(content.questions))
        return self._state

    async def retry(self) -> SessionState:
        self._state = machine.retry_generation(self._state)
        return await self.load()

    def _is_stale(self, token: int) -> bool:
        return self._state.ended or token != self._load_token

    def advance(self) -> SessionState:
        self._state = machine.advance(self._state)
        return self._state

    def submit_answer(self, question_id: str, answer: str) -> SessionState:
        self._state = machine.submit_answer(self._state, question_id, answer)
        return self._state

    def next_question(self) -> SessionState:
        self._state = machine.next_question(self._state)
        if self._state.phase == Phase.REVIEW:
            logger.info("Session %r reached review, score %d%%", self.params.topic, self.score())
        return self._state

    def previous_question(self) -> SessionState:
        self._state = machine.previous_question(self._state)
        return self._state

    def review_again(self) -> SessionState:
        self._state = machine.review_again(self._state)
        return self._state

    def end(self) -> SessionState:
        """End the session and notify the owner. Safe to call twice."""
        if self._state.ended:
            return self._state
        self._state = machine.end_session(self._state)
        logger.info("Session %r ended after %s", self.params.topic, self.duration_text())
        if self._on_end is not None:
            self._on_end(self)
        return self._state

    def score(self) -> int:
        if self._state.content is None:
            return 0
        return machine.calculate_score(self._state.content, self._state.answers, self.score_denominator)

    def correct_count(self) -> int:
        if self._state.content is None:
            return 0
        return machine.count_correct(self._state.content, self._state.answers)

    def elapsed(self) -> float:
        return machine.elapsed_seconds(self._state, self._clock())

    def duration_text(self) -> str:
        return machine.format_duration(self.elapsed())
