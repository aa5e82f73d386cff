import asyncio
import logging
from typing import Awaitable, Callable, Protocol

from study_helper.config import settings
from study_helper.llm.client import chat_completion
from study_helper.llm.parser import parse_study_content
from study_helper.llm.prompts import build_study_prompt
from study_helper.session.exceptions import ContentGenerationError
from study_helper.session.models import Question, QuestionKind, SessionParameters, StudyContent

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
    async def __call__(self, params: SessionParameters) -> StudyContent:
        """Return study content or raise ContentGenerationError."""
        ...


def build_template_content(topic: str) -> StudyContent:
    """Fixed study content with the topic substituted in."""
    return StudyContent(
        concepts=(
            f"**Core Concept 1**: Understanding the fundamental principles of {topic}",
            f"**Core Concept 2**: Key terminology and definitions related to {topic}",
            "**Core Concept 3**: Practical applications and real-world examples",
            "**Core Concept 4**: Common misconceptions and how to avoid them",
        ),
        questions=(
            Question(
                id="1",
                prompt=f"What is the primary definition of {topic}?",
                kind=QuestionKind.MULTIPLE_CHOICE,
                options=(
                    "Option A: Basic definition",
                    "Option B: Advanced definition",
                    "Option C: Technical definition",
                    "Option D: Simplified definition",
                ),
                correct_answer="Option A: Basic definition",
                explanation=(
                    f"The primary definition of {topic} is the most fundamental understanding "
                    f"that forms the basis for deeper learning."
                ),
            ),
            Question(
                id="2",
                prompt=f"Explain how {topic} relates to its broader field of study.",
                kind=QuestionKind.OPEN_ENDED,
                explanation=(
                    f"{topic} serves as a foundational element that connects various aspects of its field, "
                    f"providing a framework for understanding complex relationships and applications."
                ),
            ),
            Question(
                id="3",
                prompt=f"True or False: {topic} is only relevant in academic settings.",
                kind=QuestionKind.TRUE_FALSE,
                options=("True", "False"),
                correct_answer="False",
                explanation=(
                    f"{topic} has practical applications beyond academic settings, "
                    f"including real-world scenarios and professional contexts."
                ),
            ),
        ),
        summary=(
            f"{topic} represents a fundamental area of study that provides essential knowledge and skills. "
            f"Understanding this topic requires grasping core concepts, practicing with relevant examples, "
            f"and applying knowledge in various contexts."
        ),
    )


class TemplateContentGenerator:
    """Offline generator: no network, same content shape for every topic."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    async def __call__(self, params: SessionParameters) -> StudyContent:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        return build_template_content(params.topic)


class LLMContentGenerator:
    """Generates study content with the configured chat completions endpoint."""

    def __init__(self, completion: Callable[[str], Awaitable[str | None]] = chat_completion):
        self._completion = completion

    async def __call__(self, params: SessionParameters) -> StudyContent:
        prompt = build_study_prompt(params)

        # First attempt
        raw = await self._completion(prompt)
        content = parse_study_content(raw) if raw else None
        if content:
            return content

        # Retry once with a stricter prompt
        logger.info("First attempt didn't produce usable content, retrying...")
        retry_prompt = prompt + "\n\nIMPORTANT: Output ONLY a valid JSON object. No markdown, no extra text."
        raw = await self._completion(retry_prompt)
        content = parse_study_content(raw) if raw else None
        if content:
            return content

        logger.error("Failed to generate study content for %r after 2 attempts", params.topic)
        raise ContentGenerationError("Failed to generate study content")


def get_content_generator() -> ContentGenerator:
    if settings.CONTENT_SOURCE == "llm":
        return LLMContentGenerator()
    return TemplateContentGenerator(delay=settings.TEMPLATE_DELAY_SECONDS)
