"""Shared fixtures for study helper tests."""
import pytest

from study_helper.session import machine
from study_helper.session.models import (
    Difficulty,
    Focus,
    Question,
    QuestionKind,
    SessionParameters,
    StudyContent,
)


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def tick(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def params():
    """Valid form parameters."""
    return SessionParameters(
        topic="Photosynthesis",
        difficulty=Difficulty.INTERMEDIATE,
        focus=Focus.MIXED,
    )


@pytest.fixture
def photosynthesis_content():
    """Two multiple-choice questions with answer keys and one open-ended question."""
    return StudyContent(
        concepts=(
            "**Light reactions**: happen in the thylakoid membranes",
            "**Calvin cycle**: fixes carbon in the stroma",
        ),
        questions=(
            Question(
                id="q1",
                prompt="Where do the light reactions happen?",
                kind=QuestionKind.MULTIPLE_CHOICE,
                options=("Thylakoid membranes", "Stroma", "Mitochondria", "Nucleus"),
                correct_answer="Thylakoid membranes",
                explanation="Photosystems sit in the thylakoid membranes.",
            ),
            Question(
                id="q2",
                prompt="Which gas is released?",
                kind=QuestionKind.MULTIPLE_CHOICE,
                options=("Carbon dioxide", "Oxygen", "Nitrogen", "Hydrogen"),
                correct_answer="Oxygen",
                explanation="Water is split and oxygen is released.",
            ),
            Question(
                id="q3",
                prompt="Explain why plants need light.",
                kind=QuestionKind.OPEN_ENDED,
                explanation="Light provides the energy for the light reactions.",
            ),
        ),
        summary="Photosynthesis turns light energy into chemical energy.",
    )


@pytest.fixture
def true_false_content():
    return StudyContent(
        concepts=("**Basics**",),
        questions=(
            Question(
                id="1",
                prompt="True or False: the sky is green.",
                kind=QuestionKind.TRUE_FALSE,
                options=("True", "False"),
                correct_answer="False",
                explanation="It is blue.",
            ),
        ),
        summary="Done.",
    )


@pytest.fixture
def loaded_state(params, photosynthesis_content, clock):
    """Session with content loaded, in the concepts phase."""
    state = machine.start_session(params, clock())
    return machine.content_loaded(state, photosynthesis_content)


@pytest.fixture
def practice_state(loaded_state):
    """Session on the first practice question."""
    return machine.advance(loaded_state)
