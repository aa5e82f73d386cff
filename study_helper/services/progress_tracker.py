from study_helper.config import settings
from study_helper.db.store import SessionStore, SqliteSessionStore
from study_helper.session.machine import format_duration

DIFFICULTY_ICONS = {
    "beginner": "🟢",
    "intermediate": "🟡",
    "advanced": "🔴",
}


async def format_recent_topics(user_id: int, store: SessionStore | None = None) -> str:
    """Format recent study sessions as a readable text."""
    store = store or SqliteSessionStore()
    sessions = await store.recent_sessions(user_id, settings.RECENT_SESSIONS_LIMIT)

    if not sessions:
        return "📭 No study sessions yet. Start your first one!"

    lines = ["📚 Recent study topics:\n"]
    for s in sessions:
        icon = DIFFICULTY_ICONS.get(s["difficulty"], "⚪")
        score = round(s["score_percent"])
        lines.append(
            f"{icon} {s['topic']} ({s['difficulty']}) — {s['correct_answers']}/{s['total_questions']} ({score}%)"
        )

    return "\n".join(lines)


async def format_progress(user_id: int, store: SessionStore | None = None) -> str:
    """Format overall learning progress."""
    store = store or SqliteSessionStore()
    stats = await store.progress_summary(user_id)

    if not stats or not stats.get("total_sessions"):
        return ""

    avg = round(stats.get("avg_score") or 0)
    return (
        f"\n📈 Learning progress:\n"
        f"Sessions completed: {stats['total_sessions']}\n"
        f"Questions practised: {stats['total_questions']}\n"
        f"Correct answers: {stats['total_correct']}\n"
        f"Average score: {avg}%\n"
        f"Time studied: {format_duration(stats['total_seconds'])}"
    )
