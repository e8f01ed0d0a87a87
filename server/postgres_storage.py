"""PostgreSQL storage implementation."""

import logging
import os
import uuid

import psycopg2
from psycopg2.errors import UniqueViolation
from psycopg2.extras import Json, RealDictCursor

from core.interfaces import (
    Storage, USERS, VOCABULARY, USER_PROGRESS, SESSION_PROGRESS, USER_ACTIVITY,
    USER_MISTAKES, SPEED_CHALLENGE_SCORES, TEST_SESSIONS, EMAIL_REMINDERS,
    QUIZ_SESSIONS, DAILY_CHALLENGES
)
from server.settings import DEFAULT_DATABASE_URL

logger = logging.getLogger(__name__)

# Columns per table. Filters, ordering and writes are limited to these names.
COLUMNS = {
    USERS: ('id', 'email', 'username', 'email_reminders_enabled', 'created_at'),
    VOCABULARY: ('id', 'chinese', 'pinyin', 'english', 'difficulty', 'image_url', 'position'),
    USER_PROGRESS: ('id', 'user_id', 'vocabulary_id', 'is_learned', 'study_count',
                    'last_studied', 'created_at'),
    SESSION_PROGRESS: ('id', 'user_id', 'current_session', 'total_sessions',
                       'total_study_time', 'last_studied'),
    USER_ACTIVITY: ('id', 'user_id', 'type', 'duration', 'created_at'),
    USER_MISTAKES: ('id', 'user_id', 'word_id', 'test_type', 'created_at'),
    SPEED_CHALLENGE_SCORES: ('id', 'user_id', 'score', 'time_used', 'created_at'),
    TEST_SESSIONS: ('id', 'user_id', 'completed_at'),
    EMAIL_REMINDERS: ('id', 'user_id', 'enabled', 'last_reminder_sent', 'last_streak_count'),
    QUIZ_SESSIONS: ('id', 'user_id', 'kind', 'questions', 'started_at', 'finished_at', 'score'),
    DAILY_CHALLENGES: ('id', 'user_id', 'day', 'completed'),
}

JSON_COLUMNS = {'questions', 'completed'}

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id VARCHAR(36) PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        username VARCHAR(50) NOT NULL,
        email_reminders_enabled BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vocabulary (
        id VARCHAR(36) PRIMARY KEY,
        chinese VARCHAR(100) NOT NULL UNIQUE,
        pinyin VARCHAR(255) NOT NULL,
        english VARCHAR(500) NOT NULL,
        difficulty VARCHAR(20) NOT NULL DEFAULT 'beginner',
        image_url VARCHAR(500) NOT NULL DEFAULT '',
        position INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_progress (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL,
        vocabulary_id VARCHAR(36) NOT NULL,
        is_learned BOOLEAN NOT NULL DEFAULT FALSE,
        study_count INTEGER NOT NULL DEFAULT 0,
        last_studied TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (user_id, vocabulary_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS session_progress (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL UNIQUE,
        current_session INTEGER NOT NULL DEFAULT 0,
        total_sessions INTEGER NOT NULL DEFAULT 0,
        total_study_time INTEGER NOT NULL DEFAULT 0,
        last_studied TIMESTAMPTZ
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_activity (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL,
        type VARCHAR(20) NOT NULL,
        duration INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_user_activity_user_type_created
    ON user_activity(user_id, type, created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS user_mistakes (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL,
        word_id VARCHAR(36) NOT NULL,
        test_type VARCHAR(20) NOT NULL,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_user_mistakes_lookup
    ON user_mistakes(user_id, word_id, test_type, created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS speed_challenge_scores (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL,
        score INTEGER NOT NULL,
        time_used INTEGER NOT NULL,
        created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS test_sessions (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL,
        completed_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS email_reminders (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL UNIQUE,
        enabled BOOLEAN NOT NULL DEFAULT TRUE,
        last_reminder_sent TIMESTAMPTZ,
        last_streak_count INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS quiz_sessions (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL,
        kind VARCHAR(20) NOT NULL,
        questions JSONB NOT NULL,
        started_at TIMESTAMPTZ NOT NULL,
        finished_at TIMESTAMPTZ,
        score INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS daily_challenges (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(36) NOT NULL UNIQUE,
        day VARCHAR(10) NOT NULL,
        completed JSONB NOT NULL
    )
    """,
]


class PostgresStorage(Storage):
    """PostgreSQL-based storage implementation."""

    def __init__(self, db_url: str = None):
        self.db_url = db_url or os.environ.get('DATABASE_URL', DEFAULT_DATABASE_URL)
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            for statement in SCHEMA:
                cur.execute(statement)
        self._conn.commit()
        logger.info("Database schema ready")

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def _columns(self, entity: str, names) -> list[str]:
        allowed = COLUMNS.get(entity)
        if allowed is None:
            raise ValueError(f"Unknown entity: {entity}")
        for name in names:
            if name not in allowed:
                raise ValueError(f"Unknown column {name} for {entity}")
        return list(names)

    @staticmethod
    def _value(column: str, value):
        if column in JSON_COLUMNS and value is not None:
            return Json(value)
        return value

    def _where(self, entity: str, filters: dict) -> tuple[str, list]:
        if not filters:
            return '', []
        columns = self._columns(entity, filters)
        clauses = []
        params = []
        for column in columns:
            if filters[column] is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = %s")
                params.append(self._value(column, filters[column]))
        return ' WHERE ' + ' AND '.join(clauses), params

    def _query(self, sql: str, params: list) -> list[dict]:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(sql, params)
                rows = [dict(row) for row in cur.fetchall()]
            self.conn.commit()
            return rows
        except Exception as e:
            logger.error(f"Query failed: {e}")
            self.conn.rollback()
            raise

    def _write(self, sql: str, params: list) -> tuple[list[dict], int]:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(sql, params)
                rows = [dict(row) for row in cur.fetchall()] if cur.description else []
                rowcount = cur.rowcount
            self.conn.commit()
            return rows, rowcount
        except Exception as e:
            logger.error(f"Write failed: {e}")
            self.conn.rollback()
            raise

    def find_one(self, entity: str, **filters) -> dict | None:
        rows = self.find_many(entity, limit=1, **filters)
        return rows[0] if rows else None

    def find_many(self, entity: str, order_by: str = None, descending: bool = False,
                  limit: int = None, **filters) -> list[dict]:
        where, params = self._where(entity, filters)
        sql = f"SELECT * FROM {entity}{where}"
        if order_by:
            self._columns(entity, [order_by])
            direction = 'DESC NULLS LAST' if descending else 'ASC NULLS FIRST'
            sql += f" ORDER BY {order_by} {direction}"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)
        return self._query(sql, params)

    def create(self, entity: str, fields: dict) -> dict:
        record = {'id': str(uuid.uuid4()), **fields}
        columns = self._columns(entity, record)
        placeholders = ', '.join(['%s'] * len(columns))
        sql = (f"INSERT INTO {entity} ({', '.join(columns)}) "
               f"VALUES ({placeholders}) RETURNING *")
        rows, _ = self._write(sql, [self._value(c, record[c]) for c in columns])
        return rows[0]

    def get_or_create(self, entity: str, defaults: dict = None, **filters) -> tuple[dict, bool]:
        """Like Storage.get_or_create, but a concurrent insert of the same
        unique key returns the row that won instead of failing."""
        record = self.find_one(entity, **filters)
        if record is not None:
            return record, False
        try:
            return self.create(entity, {**(defaults or {}), **filters}), True
        except UniqueViolation:
            record = self.find_one(entity, **filters)
            if record is None:
                raise
            logger.info(f"Concurrent insert into {entity}, using existing row {record['id']}")
            return record, False

    def update(self, entity: str, record_id: str, fields: dict) -> dict | None:
        if not fields:
            return self.find_one(entity, id=record_id)
        columns = self._columns(entity, fields)
        assignments = ', '.join(f"{c} = %s" for c in columns)
        params = [self._value(c, fields[c]) for c in columns] + [record_id]
        rows, _ = self._write(f"UPDATE {entity} SET {assignments} WHERE id = %s RETURNING *", params)
        return rows[0] if rows else None

    def delete(self, entity: str, **filters) -> int:
        where, params = self._where(entity, filters)
        _, rowcount = self._write(f"DELETE FROM {entity}{where}", params)
        return rowcount

    def count(self, entity: str, **filters) -> int:
        where, params = self._where(entity, filters)
        rows = self._query(f"SELECT COUNT(*) AS count FROM {entity}{where}", params)
        return rows[0]['count']
