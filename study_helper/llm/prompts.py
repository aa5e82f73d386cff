from study_helper.config import DIFFICULTY_LABELS, FOCUS_LABELS
from study_helper.session.models import SessionParameters

FOCUS_GUIDANCE = {
    "concepts": "Spend most of the effort on clear concept explanations; keep questions simple checks of understanding.",
    "practice": "Keep concepts short; make the questions hands-on exercises that apply the topic.",
    "review": "Write questions that test recall and understanding of the whole topic.",
    "mixed": "Balance concept explanations and practice questions.",
}

QUESTION_COUNT = 5


def build_study_prompt(params: SessionParameters, count: int = QUESTION_COUNT) -> str:
    difficulty = params.difficulty.value
    focus = params.focus.value
    level = DIFFICULTY_LABELS.get(difficulty, difficulty)
    focus_label = FOCUS_LABELS.get(focus, focus)
    guidance = FOCUS_GUIDANCE.get(focus, FOCUS_GUIDANCE["mixed"])

    return f"""You are preparing a personalised study session.

Topic: {params.topic}
Student level: {level}
Focus area: {focus_label}

Produce:
1. "concepts": 3 to 5 core concepts of the topic. Each item is one short markdown paragraph that starts with a bold title, like "**Core Concept 1**: ...".
2. "questions": exactly {count} practice questions. Mix these types:
   - "multiple-choice": 4 options, exactly one correct.
   - "true-false": a statement; options are ["True", "False"].
   - "open-ended": a question the student answers in their own words; no options and no correctAnswer.
3. "summary": one paragraph that sums up what the student should remember.

Rules:
1. Difficulty must match a student who is: {level}.
2. {guidance}
3. "correctAnswer" must be the EXACT text of one of the options. Do NOT prefix options with "A)", "B)" etc.
4. Every question has a 1-2 sentence "explanation" of the correct answer.
5. Output ONLY a valid JSON object, no extra text before or after.

Output format:

{{
  "concepts": ["**Core Concept 1**: ...", "**Core Concept 2**: ..."],
  "questions": [
    {{"type": "multiple-choice", "question": "...", "options": ["...", "...", "...", "..."], "correctAnswer": "...", "explanation": "..."}},
    {{"type": "true-false", "question": "True or False: ...", "options": ["True", "False"], "correctAnswer": "False", "explanation": "..."}},
    {{"type": "open-ended", "question": "Explain ...", "explanation": "..."}}
  ],
  "summary": "..."
}}

Output ONLY the JSON object:"""
