from typing import TypedDict


class QuestionResult(TypedDict):
    question_id: str
    question_kind: str
    question_text: str
    correct_answer: str | None
    user_answer: str | None
    is_correct: bool


class SessionRecord(TypedDict):
    user_id: int
    topic: str
    difficulty: str
    focus: str
    total_questions: int
    correct_answers: int
    score_percent: float
    duration_seconds: int
    started_at: str
    results: list[QuestionResult]


class SessionSummary(TypedDict):
    id: int
    topic: str
    difficulty: str
    focus: str
    total_questions: int
    correct_answers: int
    score_percent: float
    duration_seconds: int
    finished_at: str


class ProgressSummary(TypedDict):
    total_sessions: int
    total_questions: int
    total_correct: int
    avg_score: float | None
    total_seconds: int
