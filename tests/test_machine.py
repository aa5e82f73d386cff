"""Tests for the study session state machine."""
import pytest

from study_helper.session import machine
from study_helper.session.exceptions import InvalidTransitionError
from study_helper.session.models import Phase, Question, QuestionKind, StudyContent


def _walk_to_review(state):
    """Press Next until the session leaves practice; returns (state, visited indices)."""
    visited = []
    while state.phase == Phase.PRACTICE:
        visited.append(state.current_question_index)
        state = machine.next_question(state)
    return state, visited


# ============================================================================
# ACTIVATION AND CONTENT LOADING
# ============================================================================


class TestActivation:
    """Tests for starting a session and loading its content."""

    def test_start_in_concepts_with_no_answers(self, params, clock):
        state = machine.start_session(params, clock())

        assert state.phase == Phase.CONCEPTS
        assert state.loading is True
        assert state.content is None
        assert dict(state.answers) == {}
        assert state.started_at == clock()

    def test_content_loaded(self, params, photosynthesis_content, clock):
        state = machine.content_loaded(machine.start_session(params, clock()), photosynthesis_content)

        assert state.loading is False
        assert state.content is photosynthesis_content
        assert state.phase == Phase.CONCEPTS
        assert state.content_error is None

    def test_content_failed_leaves_no_partial_content(self, params, clock):
        state = machine.content_failed(machine.start_session(params, clock()), "boom")

        assert state.loading is False
        assert state.content is None
        assert state.content_unavailable is True
        assert state.content_error == "boom"

    def test_retry_is_unbounded(self, params, photosynthesis_content, clock):
        """Any number of failures can be followed by another attempt."""
        state = machine.start_session(params, clock())
        for _ in range(5):
            state = machine.content_failed(state)
            state = machine.retry_generation(state)
            assert state.loading is True
            assert state.content_error is None

        state = machine.content_loaded(state, photosynthesis_content)
        assert state.content is photosynthesis_content

    def test_retry_not_allowed_while_loading(self, params, clock):
        with pytest.raises(InvalidTransitionError):
            machine.retry_generation(machine.start_session(params, clock()))

    def test_content_after_load_finished_is_rejected(self, loaded_state, photosynthesis_content):
        with pytest.raises(InvalidTransitionError):
            machine.content_loaded(loaded_state, photosynthesis_content)

    def test_advance_while_loading_is_rejected(self, params, clock):
        with pytest.raises(InvalidTransitionError, match="not loaded"):
            machine.advance(machine.start_session(params, clock()))


# ============================================================================
# TRANSITION TABLE
# ============================================================================


class TestTransitions:
    """One test per row of the transition table."""

    def test_concepts_to_practice(self, loaded_state):
        state = machine.advance(loaded_state)

        assert state.phase == Phase.PRACTICE
        assert state.current_question_index == 0
        assert state.explanation_visible is False

    def test_submit_answer_records_and_shows_explanation(self, practice_state):
        state = machine.submit_answer(practice_state, "q1", "Stroma")

        assert state.phase == Phase.PRACTICE
        assert state.answers == {"q1": "Stroma"}
        assert state.explanation_visible is True

    def test_next_increments_and_hides_explanation(self, practice_state):
        state = machine.submit_answer(practice_state, "q1", "Stroma")
        state = machine.next_question(state)

        assert state.current_question_index == 1
        assert state.explanation_visible is False
        assert state.phase == Phase.PRACTICE

    def test_next_at_last_index_goes_to_review(self, practice_state):
        state = machine.next_question(machine.next_question(practice_state))
        assert state.current_question_index == 2

        state = machine.next_question(state)

        assert state.phase == Phase.REVIEW
        assert state.current_question_index == 2
        assert state.reached_review is True

    def test_previous_decrements_and_hides_explanation(self, practice_state):
        state = machine.next_question(practice_state)
        state = machine.submit_answer(state, "q2", "Oxygen")

        state = machine.previous_question(state)

        assert state.current_question_index == 0
        assert state.explanation_visible is False

    def test_previous_at_first_question_is_noop(self, practice_state):
        assert machine.previous_question(practice_state) is practice_state

    def test_review_again_keeps_answers_and_start(self, practice_state):
        state = machine.submit_answer(practice_state, "q1", "Thylakoid membranes")
        state, _ = _walk_to_review(state)

        again = machine.review_again(state)

        assert again.phase == Phase.CONCEPTS
        assert again.answers == {"q1": "Thylakoid membranes"}
        assert again.started_at == practice_state.started_at

    def test_end_session_from_any_phase(self, loaded_state, practice_state):
        for state in (loaded_state, practice_state):
            assert machine.end_session(state).ended is True

    def test_events_after_end_are_ignored(self, params, photosynthesis_content, clock):
        """A content result arriving after the session ended changes nothing."""
        ended = machine.end_session(machine.start_session(params, clock()))

        assert machine.content_loaded(ended, photosynthesis_content) is ended
        assert machine.content_failed(ended) is ended
        assert machine.advance(ended) is ended

    def test_review_again_only_from_review(self, practice_state):
        with pytest.raises(InvalidTransitionError, match="review"):
            machine.review_again(practice_state)

    def test_no_backward_jump_from_practice(self, practice_state):
        with pytest.raises(InvalidTransitionError):
            machine.advance(practice_state)


class TestNavigation:
    """Walking through every question."""

    def test_forward_walk_visits_every_question_once(self, practice_state):
        state, visited = _walk_to_review(practice_state)

        assert visited == [0, 1, 2]
        assert state.phase == Phase.REVIEW

    def test_index_stays_in_bounds(self, practice_state):
        state = practice_state
        for _ in range(10):
            state = machine.previous_question(state)
        assert state.current_question_index == 0

        state, _ = _walk_to_review(state)
        assert 0 <= state.current_question_index < len(state.content.questions)

    def test_next_without_answering_is_allowed(self, practice_state):
        state = machine.next_question(practice_state)
        assert state.current_question_index == 1
        assert dict(state.answers) == {}


# ============================================================================
# ANSWERS
# ============================================================================


class TestSubmitAnswer:
    """Tests for recording answers."""

    def test_option_answer_stored_as_exact_text(self, practice_state):
        state = machine.submit_answer(practice_state, "q1", "Thylakoid membranes")
        assert state.answers["q1"] == "Thylakoid membranes"

    def test_true_false_answer(self, params, true_false_content, clock):
        state = machine.content_loaded(machine.start_session(params, clock()), true_false_content)
        state = machine.advance(state)

        state = machine.submit_answer(state, "1", "False")

        assert state.answers == {"1": "False"}
        assert state.explanation_visible is True

    def test_answer_must_be_an_option(self, practice_state):
        with pytest.raises(InvalidTransitionError, match="not an option"):
            machine.submit_answer(practice_state, "q1", "thylakoid membranes")

    def test_only_current_question_can_be_answered(self, practice_state):
        with pytest.raises(InvalidTransitionError, match="not the current question"):
            machine.submit_answer(practice_state, "q2", "Oxygen")

    def test_unknown_question_id(self, practice_state):
        with pytest.raises(InvalidTransitionError):
            machine.submit_answer(practice_state, "missing", "Oxygen")

    def test_option_question_answered_once_per_visit(self, practice_state):
        state = machine.submit_answer(practice_state, "q1", "Stroma")
        with pytest.raises(InvalidTransitionError, match="already answered"):
            machine.submit_answer(state, "q1", "Thylakoid membranes")

    def test_answer_can_change_after_revisit(self, practice_state):
        state = machine.submit_answer(practice_state, "q1", "Stroma")
        state = machine.previous_question(machine.next_question(state))

        state = machine.submit_answer(state, "q1", "Thylakoid membranes")

        assert state.answers == {"q1": "Thylakoid membranes"}

    def test_open_ended_free_text(self, practice_state):
        state = machine.next_question(machine.next_question(practice_state))

        state = machine.submit_answer(state, "q3", "Light gives the energy")
        state = machine.submit_answer(state, "q3", "Light drives the light reactions")

        assert state.answers["q3"] == "Light drives the light reactions"
        assert state.explanation_visible is True

    def test_previous_state_is_not_mutated(self, practice_state):
        machine.submit_answer(practice_state, "q1", "Stroma")
        assert dict(practice_state.answers) == {}
        assert practice_state.explanation_visible is False

    def test_answers_only_grow(self, practice_state):
        state = machine.submit_answer(practice_state, "q1", "Stroma")
        state = machine.submit_answer(machine.next_question(state), "q2", "Oxygen")
        state, _ = _walk_to_review(state)
        state = machine.review_again(state)

        assert set(state.answers) == {"q1", "q2"}
        assert set(state.answers) <= state.content.question_ids()


class TestApply:
    """Tests for the event dispatcher."""

    def test_apply_matches_functions(self, loaded_state):
        state = machine.apply(loaded_state, machine.Advance())
        state = machine.apply(state, machine.SubmitAnswer("q1", "Stroma"))
        state = machine.apply(state, machine.NextQuestion())
        state = machine.apply(state, machine.PreviousQuestion())

        assert state.phase == Phase.PRACTICE
        assert state.current_question_index == 0
        assert state.answers == {"q1": "Stroma"}

    def test_apply_end(self, loaded_state):
        assert machine.apply(loaded_state, machine.EndSession()).ended is True

    def test_apply_unknown_event(self, loaded_state):
        with pytest.raises(InvalidTransitionError, match="Unknown event"):
            machine.apply(loaded_state, object())


# ============================================================================
# SCORE AND TIME
# ============================================================================


class TestScore:
    """Tests for score calculation."""

    def test_photosynthesis_example_total_denominator(self, photosynthesis_content):
        """Both multiple-choice correct, open-ended unanswered: 2/3 -> 67."""
        answers = {"q1": "Thylakoid membranes", "q2": "Oxygen"}
        assert machine.calculate_score(photosynthesis_content, answers) == 67

    def test_photosynthesis_example_scored_denominator(self, photosynthesis_content):
        answers = {"q1": "Thylakoid membranes", "q2": "Oxygen", "q3": "anything"}
        assert machine.calculate_score(photosynthesis_content, answers, "scored") == 100

    def test_all_correct_is_100(self, true_false_content):
        assert machine.calculate_score(true_false_content, {"1": "False"}) == 100

    def test_zero_correct_is_0(self, photosynthesis_content):
        answers = {"q1": "Stroma", "q2": "Nitrogen"}
        assert machine.calculate_score(photosynthesis_content, answers) == 0
        assert machine.calculate_score(photosynthesis_content, answers, "scored") == 0

    def test_no_answers_is_0(self, photosynthesis_content):
        assert machine.calculate_score(photosynthesis_content, {}) == 0

    def test_comparison_is_case_sensitive(self, true_false_content):
        assert machine.calculate_score(true_false_content, {"1": "false"}) == 0

    def test_rounds_half_up(self):
        questions = tuple(
            Question(id=str(i), prompt="?", kind=QuestionKind.TRUE_FALSE,
                     options=("True", "False"), correct_answer="True", explanation=".")
            for i in range(8)
        )
        content = StudyContent(concepts=(), questions=questions, summary="")
        # 1/8 = 12.5%
        assert machine.calculate_score(content, {"0": "True"}) == 13

    def test_scored_with_only_open_ended(self):
        content = StudyContent(
            concepts=(),
            questions=(Question(id="1", prompt="?", kind=QuestionKind.OPEN_ENDED, explanation="."),),
            summary="",
        )
        assert machine.calculate_score(content, {"1": "text"}, "scored") == 0

    def test_unknown_denominator(self, photosynthesis_content):
        with pytest.raises(ValueError):
            machine.calculate_score(photosynthesis_content, {}, "answered")


class TestDuration:
    """Tests for elapsed time formatting."""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0:00"),
        (5, "0:05"),
        (59.9, "0:59"),
        (60, "1:00"),
        (125, "2:05"),
        (3600, "60:00"),
    ])
    def test_format_duration(self, seconds, expected):
        assert machine.format_duration(seconds) == expected

    def test_elapsed_keeps_running_after_review_again(self, practice_state, clock):
        state, _ = _walk_to_review(practice_state)
        clock.tick(90)
        first = machine.elapsed_seconds(state, clock())

        state = machine.review_again(state)
        clock.tick(30)

        assert machine.elapsed_seconds(state, clock()) == first + 30 == 120
