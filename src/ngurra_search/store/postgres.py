"""
PostgreSQL record store.

Uses a psycopg2 ThreadedConnectionPool owned by the store instance.
Each content type has one joined SELECT; full syncs read it directly and
degraded-mode queries wrap it with reduced predicates.

Usage:
    store = PostgresRecordStore(settings)
    rows, total = store.find(StoreQuery(ContentType.COURSES, text="welding", ...))
"""

import threading
import uuid
from contextlib import contextmanager
from datetime import timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

import psycopg2
from psycopg2 import pool, sql
from psycopg2.extras import RealDictCursor
from loguru import logger

from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.content_types import ContentType
from ngurra_search.exceptions import StoreError
from ngurra_search.schemas.analytics import SearchLogEntry
from ngurra_search.store.base import RecordStore, StoreQuery

# Fully joined source rows, one per content type, over the application's
# Prisma schema (quoted camelCase tables and columns). Every row is aliased
# to the snake_case keys the profiles read; attributes the schema does not
# carry are selected as typed placeholders so fallback filters still resolve.
SOURCE_QUERIES: Dict[ContentType, str] = {
    ContentType.JOBS: """
        SELECT j."id" AS id, j."title" AS title, j."description" AS description,
               j."userId" AS company_id, cp."companyName" AS company_name,
               j."location" AS location, NULL::text AS state,
               NULL::double precision AS latitude, NULL::double precision AS longitude,
               j."employment" AS employment, j."salaryLow" AS salary_low,
               j."salaryHigh" AS salary_high, NULL::text AS industry,
               NULL::text AS experience_level, FALSE AS is_remote,
               FALSE AS is_indigenous_focused, j."isFeatured" AS is_featured,
               j."isActive" AS is_active, j."postedAt" AS posted_at,
               j."expiresAt" AS expires_at, j."viewCount" AS view_count,
               j."createdAt" AS created_at,
               ARRAY(
                   SELECT s."name" FROM "JobSkill" js
                   JOIN "Skill" s ON s."id" = js."skillId"
                   WHERE js."jobId" = j."id" ORDER BY s."name"
               ) AS skills,
               (SELECT COUNT(*) FROM "JobApplication" a WHERE a."jobId" = j."id") AS application_count
        FROM "Job" j
        LEFT JOIN "CompanyProfile" cp ON cp."userId" = j."userId"
    """,
    ContentType.COURSES: """
        SELECT c."id" AS id, c."title" AS title, c."description" AS description,
               c."category" AS category, c."providerId" AS provider_id,
               c."providerName" AS provider_name, c."duration" AS duration,
               c."qualification" AS qualification, c."priceInCents" AS price_in_cents,
               c."isOnline" AS is_online, FALSE AS is_accredited,
               c."isActive" AS is_active, NULL::double precision AS average_rating,
               c."createdAt" AS created_at,
               ARRAY(
                   SELECT s."name" FROM "CourseSkill" cs
                   JOIN "Skill" s ON s."id" = cs."skillId"
                   WHERE cs."courseId" = c."id" ORDER BY s."name"
               ) AS skills,
               (SELECT COUNT(*) FROM "CourseEnrolment" e WHERE e."courseId" = c."id") AS enrollment_count
        FROM "Course" c
    """,
    ContentType.MENTORS: """
        SELECT m."id" AS id, COALESCE(m."name", u."name") AS name, m."title" AS title,
               m."bio" AS bio, m."skills" AS skills, m."industry" AS industry,
               m."location" AS location, NULL::integer AS years_experience,
               m."active" AS is_active, TRUE AS is_available, FALSE AS is_featured,
               (
                   SELECT AVG(ms."rating") FROM "MentorSession" ms
                   WHERE ms."mentorId" = m."userId" AND ms."rating" IS NOT NULL
               ) AS average_rating,
               (
                   SELECT COUNT(*) FROM "MentorSession" ms
                   WHERE ms."mentorId" = m."userId" AND ms."completedAt" IS NOT NULL
               ) AS session_count,
               m."expertise" AS specializations, m."createdAt" AS created_at
        FROM "MentorProfile" m
        LEFT JOIN "User" u ON u."id" = m."userId"
    """,
    ContentType.FORUMS: """
        SELECT t."id" AS id, t."title" AS title, t."content" AS content,
               fc."name" AS category, t."authorId" AS author_id, u."name" AS author_name,
               NULL::text AS tags, t."isPinned" AS is_pinned, t."isClosed" AS is_locked,
               TRUE AS is_published, t."viewCount" AS view_count,
               (SELECT COUNT(*) FROM "ForumReply" fr WHERE fr."threadId" = t."id") AS reply_count,
               0 AS like_count, t."createdAt" AS created_at,
               COALESCE(
                   (SELECT MAX(fr."createdAt") FROM "ForumReply" fr WHERE fr."threadId" = t."id"),
                   t."createdAt"
               ) AS last_activity_at
        FROM "ForumThread" t
        LEFT JOIN "ForumCategory" fc ON fc."id" = t."categoryId"
        LEFT JOIN "User" u ON u."id" = t."authorId"
    """,
}

SEARCH_LOG_INSERT = """
    INSERT INTO "SearchLog"
        ("id", "query", "indexType", "searchType", "resultCount", "userId", "duration", "createdAt")
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
"""


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresRecordStore(RecordStore):
    """
    Record store over the application's PostgreSQL schema.

    The pool is created lazily on first use (double-checked under a lock)
    and closed by close().
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._pool_lock = threading.Lock()

    def _get_pool(self) -> pool.ThreadedConnectionPool:
        if self._pool is None:
            with self._pool_lock:
                if self._pool is None:
                    params = self.settings.db_params()
                    self._pool = pool.ThreadedConnectionPool(
                        self.settings.db_pool_min_conn,
                        self.settings.db_pool_max_conn,
                        **params,
                    )
                    logger.info(
                        f"Database connection pool initialized min={self.settings.db_pool_min_conn} "
                        f"max={self.settings.db_pool_max_conn} host={params['host']} db={params['dbname']}"
                    )
        return self._pool

    @contextmanager
    def get_connection(self):
        """
        Borrow a pooled connection.

        Commits on normal exit, rolls back and re-raises on exception;
        the connection always returns to the pool.
        """
        try:
            p = self._get_pool()
            conn = p.getconn()
        except psycopg2.Error as e:
            raise StoreError(f"Cannot connect to record store: {e}") from e

        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            p.putconn(conn)

    def _source(self, content_type) -> sql.SQL:
        return sql.SQL(SOURCE_QUERIES[ContentType(content_type)])

    def fetch_records(self, content_type) -> Iterator[Dict[str, Any]]:
        query = self._source(content_type)
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(query)
                    rows = cur.fetchall()
        except psycopg2.Error as e:
            raise StoreError(f"Failed to read {ContentType(content_type).value} records: {e}") from e

        logger.info(f"Read {len(rows)} {ContentType(content_type).value} records from store")
        return iter([dict(row) for row in rows])

    def fetch_record(self, content_type, record_id: Any) -> Optional[Dict[str, Any]]:
        query = sql.SQL("SELECT * FROM ({source}) AS r WHERE r.id = %s").format(
            source=self._source(content_type)
        )
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(query, (str(record_id),))
                    row = cur.fetchone()
        except psycopg2.Error as e:
            raise StoreError(f"Failed to read {ContentType(content_type).value}/{record_id}: {e}") from e

        return dict(row) if row else None

    def _where(self, query: StoreQuery) -> Tuple[sql.Composable, List[Any]]:
        """WHERE clause and parameters for a reduced query"""
        predicates: List[sql.Composable] = []
        params: List[Any] = []

        if query.text and query.text_columns:
            pattern = f"%{escape_like(query.text)}%"
            predicates.append(
                sql.SQL("({})").format(
                    sql.SQL(" OR ").join(
                        sql.SQL("r.{} ILIKE %s").format(sql.Identifier(column))
                        for column in query.text_columns
                    )
                )
            )
            params.extend([pattern] * len(query.text_columns))

        for column, value in query.equals.items():
            predicates.append(sql.SQL("r.{} = %s").format(sql.Identifier(column)))
            params.append(value)

        for column, values in query.any_of.items():
            predicates.append(sql.SQL("r.{} = ANY(%s)").format(sql.Identifier(column)))
            params.append(list(values))

        if not predicates:
            return sql.SQL(""), params
        return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(predicates), params

    def find(self, query: StoreQuery) -> Tuple[List[Dict[str, Any]], int]:
        where, params = self._where(query)
        source = self._source(query.content_type)

        page_query = sql.SQL(
            "SELECT * FROM ({source}) AS r{where} "
            "ORDER BY r.{order} {direction} NULLS LAST LIMIT %s OFFSET %s"
        ).format(
            source=source,
            where=where,
            order=sql.Identifier(query.order_by),
            direction=sql.SQL("DESC" if query.descending else "ASC"),
        )
        count_query = sql.SQL("SELECT COUNT(*) AS total FROM ({source}) AS r{where}").format(
            source=source,
            where=where,
        )

        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(page_query, params + [query.limit, query.offset])
                    rows = [dict(row) for row in cur.fetchall()]
                    cur.execute(count_query, params)
                    total = cur.fetchone()["total"]
        except psycopg2.Error as e:
            raise StoreError(f"Store query failed for {query.content_type.value}: {e}") from e

        return rows, int(total)

    def append_search_log(self, entry: SearchLogEntry) -> None:
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        SEARCH_LOG_INSERT,
                        (
                            str(uuid.uuid4()),
                            entry.query_text,
                            entry.content_type,
                            "fallback" if entry.degraded else "keyword",
                            entry.result_count,
                            entry.actor_id,
                            entry.duration_ms,
                            entry.timestamp.astimezone(timezone.utc).replace(tzinfo=None),
                        ),
                    )
        except psycopg2.Error as e:
            raise StoreError(f"Failed to append search log: {e}") from e

    def close(self) -> None:
        """Shut down the pool"""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("Database connection pool closed")
