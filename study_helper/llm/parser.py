import json
import logging
import re

from study_helper.session.models import Question, QuestionKind, StudyContent

logger = logging.getLogger(__name__)

KIND_ALIASES = {
    "multiple-choice": QuestionKind.MULTIPLE_CHOICE,
    "multiple_choice": QuestionKind.MULTIPLE_CHOICE,
    "multiplechoice": QuestionKind.MULTIPLE_CHOICE,
    "mcq": QuestionKind.MULTIPLE_CHOICE,
    "true-false": QuestionKind.TRUE_FALSE,
    "true_false": QuestionKind.TRUE_FALSE,
    "truefalse": QuestionKind.TRUE_FALSE,
    "open-ended": QuestionKind.OPEN_ENDED,
    "open_ended": QuestionKind.OPEN_ENDED,
    "openended": QuestionKind.OPEN_ENDED,
    "open": QuestionKind.OPEN_ENDED,
}

TRUE_FALSE_OPTIONS = ("True", "False")

_LETTER_RE = re.compile(r"^[A-Da-d][).:\s]+")


def parse_study_content(raw_text: str) -> StudyContent | None:
    """Parse LLM output into StudyContent. Returns None on failure."""
    if not raw_text:
        return None

    # Try direct JSON parse
    data = _try_parse_json(raw_text)

    # Try extracting from markdown code block
    if data is None:
        match = re.search(r"```(?:json)?\s*(\{.+?})\s*```", raw_text, re.DOTALL)
        if match:
            data = _try_parse_json(match.group(1))

    # Try finding an object in the text
    if data is None:
        match = re.search(r"(\{.+})", raw_text, re.DOTALL)
        if match:
            data = _try_parse_json(match.group(1))

    if data is None:
        logger.error("Failed to parse LLM response as JSON")
        return None

    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        logger.error("LLM response has no questions list")
        return None

    questions = []
    for q in raw_questions:
        question = _parse_question(q, position=len(questions) + 1)
        if question is not None:
            questions.append(question)
        else:
            logger.warning(f"Skipping invalid question: {q}")

    if not questions:
        logger.error("LLM response contains no usable questions")
        return None

    raw_concepts = data.get("concepts")
    if not isinstance(raw_concepts, list):
        raw_concepts = []
    concepts = tuple(str(c).strip() for c in raw_concepts if str(c).strip())
    summary = str(data.get("summary") or "").strip()

    return StudyContent(
        concepts=concepts,
        questions=tuple(_unique_ids(questions)),
        summary=summary,
    )


def _try_parse_json(text: str) -> dict | None:
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except (json.JSONDecodeError, TypeError):
        pass
    return None


def _parse_question(q, position: int) -> Question | None:
    if not isinstance(q, dict):
        return None

    kind = KIND_ALIASES.get(str(q.get("type", "")).strip().lower())
    prompt = str(q.get("question") or "").strip()
    explanation = str(q.get("explanation") or "").strip()
    if kind is None or not prompt or not explanation:
        return None

    qid = str(q.get("id") or position)

    if kind == QuestionKind.OPEN_ENDED:
        return Question(id=qid, prompt=prompt, kind=kind, explanation=explanation)

    raw_options = q.get("options")
    if raw_options is None:
        raw_options = []
    if not isinstance(raw_options, list):
        return None
    options = [str(opt) for opt in raw_options]
    if kind == QuestionKind.TRUE_FALSE and not options:
        options = list(TRUE_FALSE_OPTIONS)
    correct = q.get("correctAnswer", q.get("correct_answer", q.get("correct")))
    if correct is None or not options:
        return None

    options, correct = _normalize_options(options, str(correct))
    if correct not in options:
        return None

    return Question(
        id=qid,
        prompt=prompt,
        kind=kind,
        explanation=explanation,
        options=tuple(options),
        correct_answer=correct,
    )


def _normalize_options(options: list[str], correct: str) -> tuple[list[str], str]:
    """Strip letter prefixes from options and resolve letter-based correct answers."""
    # Strip letter prefixes like "A) ", "a. ", "B: " only when every option has one
    if all(_LETTER_RE.match(opt) for opt in options):
        cleaned = [_LETTER_RE.sub("", opt).strip() for opt in options]
    else:
        cleaned = [opt.strip() for opt in options]

    # If correct is a single letter (A/B/C/D), resolve to actual option text
    if re.match(r"^[A-Da-d]$", correct.strip()):
        idx = ord(correct.strip().upper()) - ord("A")
        if 0 <= idx < len(cleaned):
            return cleaned, cleaned[idx]

    correct = correct.strip()
    if correct in cleaned:
        return cleaned, correct

    # If correct still has a letter prefix, strip it too
    stripped = _LETTER_RE.sub("", correct).strip()
    if stripped in cleaned:
        return cleaned, stripped

    # LLMs like to answer "true"/"false" in lower case
    for opt in cleaned:
        if opt.lower() == correct.lower():
            return cleaned, opt
    return cleaned, correct


def _unique_ids(questions: list[Question]) -> list[Question]:
    """Renumber all questions "1".."n" when the LLM gave duplicate ids."""
    ids = [q.id for q in questions]
    if len(set(ids)) == len(ids):
        return questions
    return [
        Question(
            id=str(i),
            prompt=q.prompt,
            kind=q.kind,
            explanation=q.explanation,
            options=q.options,
            correct_answer=q.correct_answer,
        )
        for i, q in enumerate(questions, start=1)
    ]
