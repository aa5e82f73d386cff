"""Persistence boundary for finished study sessions."""
from datetime import datetime, timezone
from typing import Protocol

from study_helper.db import queries
from study_helper.db.models import ProgressSummary, QuestionResult, SessionRecord, SessionSummary
from study_helper.services.session_runner import SessionRunner


class SessionStore(Protocol):
    async def save_session(self, record: SessionRecord) -> int: ...

    async def recent_sessions(self, user_id: int, limit: int = 10) -> list[SessionSummary]: ...

    async def progress_summary(self, user_id: int) -> ProgressSummary: ...


class SqliteSessionStore:
    """SessionStore backed by the aiosqlite connection in study_helper.db.database."""

    async def save_session(self, record: SessionRecord) -> int:
        return await queries.save_study_session(record)

    async def recent_sessions(self, user_id: int, limit: int = 10) -> list[SessionSummary]:
        return await queries.get_user_sessions(user_id, limit)

    async def progress_summary(self, user_id: int) -> ProgressSummary:
        return await queries.get_progress_summary(user_id)


def build_session_record(user_id: int, runner: SessionRunner) -> SessionRecord:
    """Snapshot a runner's state as a row set for the store."""
    state = runner.state
    content = state.content
    questions = content.questions if content is not None else ()

    results: list[QuestionResult] = []
    for q in questions:
        user_answer = state.answers.get(q.id)
        results.append({
            "question_id": q.id,
            "question_kind": q.kind.value,
            "question_text": q.prompt,
            "correct_answer": q.correct_answer,
            "user_answer": user_answer,
            "is_correct": q.correct_answer is not None and user_answer == q.correct_answer,
        })

    return {
        "user_id": user_id,
        "topic": runner.params.topic,
        "difficulty": runner.params.difficulty.value,
        "focus": runner.params.focus.value,
        "total_questions": len(questions),
        "correct_answers": runner.correct_count(),
        "score_percent": float(runner.score()),
        "duration_seconds": int(runner.elapsed()),
        "started_at": datetime.fromtimestamp(state.started_at, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        "results": results,
    }
