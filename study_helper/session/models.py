"""Data models for study sessions."""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Focus(str, Enum):
    CONCEPTS = "concepts"
    PRACTICE = "practice"
    REVIEW = "review"
    MIXED = "mixed"


class QuestionKind(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    OPEN_ENDED = "open-ended"


class Phase(str, Enum):
    CONCEPTS = "concepts"
    PRACTICE = "practice"
    REVIEW = "review"


PHASE_ORDER = (Phase.CONCEPTS, Phase.PRACTICE, Phase.REVIEW)


@dataclass(frozen=True)
class SessionParameters:
    """What the user asked to study. Immutable once a session starts."""
    topic: str
    difficulty: Difficulty = Difficulty.BEGINNER
    focus: Focus = Focus.CONCEPTS


@dataclass(frozen=True)
class Question:
    """Single practice question."""
    id: str
    prompt: str
    kind: QuestionKind
    explanation: str
    options: Tuple[str, ...] = ()
    correct_answer: Optional[str] = None

    @property
    def has_options(self) -> bool:
        return self.kind != QuestionKind.OPEN_ENDED


@dataclass(frozen=True)
class StudyContent:
    """Concepts, questions and summary generated for one session."""
    concepts: Tuple[str, ...]
    questions: Tuple[Question, ...]
    summary: str

    def __post_init__(self):
        if not self.questions:
            raise ValueError("StudyContent needs at least one question")
        ids = [q.id for q in self.questions]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate question ids: {ids}")

    def question_ids(self) -> frozenset:
        return frozenset(q.id for q in self.questions)


EMPTY_ANSWERS: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True)
class SessionState:
    """Everything the session runner knows at one point in time.

    Transitions never mutate a state; they return a new one
    (see ``study_helper.session.machine``).
    """
    params: SessionParameters
    started_at: float
    phase: Phase = Phase.CONCEPTS
    content: Optional[StudyContent] = None
    loading: bool = True
    content_error: Optional[str] = None
    current_question_index: int = 0
    answers: Mapping[str, str] = field(default_factory=lambda: EMPTY_ANSWERS)
    explanation_visible: bool = False
    reached_review: bool = False
    ended: bool = False

    @property
    def content_unavailable(self) -> bool:
        return not self.loading and self.content is None

    @property
    def current_question(self) -> Optional[Question]:
        if self.content is None or self.phase != Phase.PRACTICE:
            return None
        return self.content.questions[self.current_question_index]

    @property
    def is_last_question(self) -> bool:
        if self.content is None:
            return False
        return self.current_question_index == len(self.content.questions) - 1
