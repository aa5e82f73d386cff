import logging
import os
import aiosqlite

from study_helper.config import settings

logger = logging.getLogger(__name__)

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    """Get or create the database connection."""
    global _db
    if _db is None:
        db_dir = os.path.dirname(settings.DB_PATH)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        _db = await aiosqlite.connect(settings.DB_PATH)
        _db.row_factory = aiosqlite.Row
        await _create_tables(_db)
        logger.info("Database ready at %s", settings.DB_PATH)
    return _db


async def close_db():
    """Close the database connection."""
    global _db
    if _db:
        await _db.close()
        _db = None


async def _create_tables(db: aiosqlite.Connection):
    await db.executescript("""
        PRAGMA foreign_keys = ON;

        CREATE TABLE IF NOT EXISTS users (
            user_id       INTEGER PRIMARY KEY,
            username      TEXT,
            first_name    TEXT,
            created_at    TEXT DEFAULT (datetime('now')),
            last_active   TEXT DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS study_sessions (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id          INTEGER NOT NULL,
            topic            TEXT NOT NULL,
            difficulty       TEXT NOT NULL,
            focus            TEXT NOT NULL,
            total_questions  INTEGER NOT NULL,
            correct_answers  INTEGER NOT NULL,
            score_percent    REAL NOT NULL,
            duration_seconds INTEGER NOT NULL,
            started_at       TEXT NOT NULL,
            finished_at      TEXT DEFAULT (datetime('now')),
            FOREIGN KEY (user_id) REFERENCES users(user_id)
        );

        CREATE TABLE IF NOT EXISTS question_results (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id      INTEGER NOT NULL,
            question_id     TEXT NOT NULL,
            question_kind   TEXT NOT NULL,
            question_text   TEXT NOT NULL,
            correct_answer  TEXT,
            user_answer     TEXT,
            is_correct      INTEGER NOT NULL,
            FOREIGN KEY (session_id) REFERENCES study_sessions(id)
        );

        CREATE INDEX IF NOT EXISTS idx_study_sessions_user
            ON study_sessions (user_id, finished_at);
    """)
    await db.commit()
