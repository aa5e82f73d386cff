from study_helper.db.database import get_db
from study_helper.db.models import ProgressSummary, SessionRecord, SessionSummary


async def ensure_user(user_id: int, username: str | None = None, first_name: str | None = None):
    """Create or update a user record."""
    db = await get_db()
    await db.execute(
        """INSERT INTO users (user_id, username, first_name)
           VALUES (?, ?, ?)
           ON CONFLICT(user_id) DO UPDATE SET
               username = excluded.username,
               first_name = excluded.first_name,
               last_active = datetime('now')""",
        (user_id, username, first_name),
    )
    await db.commit()


async def save_study_session(record: SessionRecord) -> int:
    """Save a finished study session and its individual question results."""
    db = await get_db()

    # All rows or none
    try:
        await db.execute("INSERT OR IGNORE INTO users (user_id) VALUES (?)", (record["user_id"],))

        cursor = await db.execute(
            """INSERT INTO study_sessions
               (user_id, topic, difficulty, focus, total_questions, correct_answers,
                score_percent, duration_seconds, started_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                record["user_id"],
                record["topic"],
                record["difficulty"],
                record["focus"],
                record["total_questions"],
                record["correct_answers"],
                record["score_percent"],
                record["duration_seconds"],
                record["started_at"],
            ),
        )
        session_id = cursor.lastrowid

        for r in record["results"]:
            await db.execute(
                """INSERT INTO question_results
                   (session_id, question_id, question_kind, question_text, correct_answer, user_answer, is_correct)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    session_id,
                    r["question_id"],
                    r["question_kind"],
                    r["question_text"],
                    r["correct_answer"],
                    r["user_answer"],
                    1 if r["is_correct"] else 0,
                ),
            )

        await db.commit()
        return session_id
    except Exception:
        await db.rollback()
        raise


async def get_user_sessions(user_id: int, limit: int = 10) -> list[SessionSummary]:
    """Get recent study sessions for a user."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT id, topic, difficulty, focus, total_questions, correct_answers,
                  score_percent, duration_seconds, finished_at
           FROM study_sessions
           WHERE user_id = ?
           ORDER BY finished_at DESC, id DESC
           LIMIT ?""",
        (user_id, limit),
    )
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


async def get_progress_summary(user_id: int) -> ProgressSummary:
    """Get overall progress for a user."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT
               COUNT(*) as total_sessions,
               COALESCE(SUM(total_questions), 0) as total_questions,
               COALESCE(SUM(correct_answers), 0) as total_correct,
               AVG(score_percent) as avg_score,
               COALESCE(SUM(duration_seconds), 0) as total_seconds
           FROM study_sessions
           WHERE user_id = ?""",
        (user_id,),
    )
    row = await cursor.fetchone()
    return dict(row)
