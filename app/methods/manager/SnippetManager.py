# /app/methods/manager/SnippetManager.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from methods.database.models import Snippet as SnippetRow
from methods.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)

EXPIRY_DAYS = (1, 7, 365)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _naive_utc(t: datetime) -> datetime:
    # rows are stored as naive UTC
    if t.tzinfo is None:
        return t
    return t.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Snippet:
    id: int
    title: str
    content: str
    created: datetime
    expires: datetime

    @classmethod
    def from_row(cls, row: SnippetRow) -> "Snippet":
        return cls(
            id=row.id,
            title=row.title,
            content=row.content,
            created=row.created.replace(tzinfo=timezone.utc),
            expires=row.expires.replace(tzinfo=timezone.utc),
        )


class SnippetStore:
    """
    Durable snippet storage. Every read filters on expires > now, so an
    expired row is indistinguishable from one that never existed.
    """
    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow) -> None:
        self.SessionLocal = session_factory
        self.clock = clock

    def create(self, title: str, content: str, expiry_days: int) -> int:
        if expiry_days not in EXPIRY_DAYS:
            raise ValueError(f"expiry_days must be one of {EXPIRY_DAYS}, got {expiry_days!r}")

        created = _naive_utc(self.clock())
        row = SnippetRow(
            title=title,
            content=content,
            created=created,
            expires=created + timedelta(days=expiry_days),
        )
        with self.SessionLocal() as db:
            try:
                db.add(row)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("SnippetManager.py: [create] insert failed")
                raise StoreError("insert snippet failed") from e

        logger.info("SnippetManager.py: [create] snippet %s expires %s", row.id, row.expires)
        return row.id

    def get(self, snippet_id: int) -> Snippet:
        now = _naive_utc(self.clock())
        try:
            with self.SessionLocal() as db:
                row = db.execute(
                    select(SnippetRow).where(SnippetRow.id == snippet_id, SnippetRow.expires > now)
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("SnippetManager.py: [get] query failed for id=%s", snippet_id)
            raise StoreError("load snippet failed") from e

        if row is None:
            raise NotFoundError(snippet_id)
        return Snippet.from_row(row)

    def latest(self, limit: int = 10) -> List[Snippet]:
        if limit <= 0:
            return []
        now = _naive_utc(self.clock())
        try:
            with self.SessionLocal() as db:
                rows = db.execute(
                    select(SnippetRow)
                    .where(SnippetRow.expires > now)
                    .order_by(SnippetRow.created.desc(), SnippetRow.id.desc())
                    .limit(limit)
                ).scalars().all()
        except SQLAlchemyError as e:
            logger.exception("SnippetManager.py: [latest] query failed")
            raise StoreError("list snippets failed") from e
        return [Snippet.from_row(r) for r in rows]
