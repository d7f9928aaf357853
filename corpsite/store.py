"""
Relational store abstraction: SQLAlchemy-backed and in-memory implementations.

Both publish a change event to their feed after each successful write so
realtime subscribers see the same signals a managed change feed would send.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    String,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from corpsite.errors import RowNotFoundError, StoreError
from corpsite.realtime import ChangeEvent, ChangeFeed, ChangeKind

logger = logging.getLogger(__name__)

BLOGS_TABLE = "blogs"
CONTACT_MESSAGES_TABLE = "contact_messages"
TABLES = (BLOGS_TABLE, CONTACT_MESSAGES_TABLE)


class StoreClient(Protocol):
    """Interface for table-level CRUD against the managed store."""

    def select_all(self, table: str, order_by: str) -> list[dict]:
        ...

    def insert(self, table: str, row: dict) -> dict:
        ...

    def update(self, table: str, row_id: str, fields: dict) -> dict:
        ...

    def delete(self, table: str, row_id: str) -> str:
        ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise StoreError(f'relation "public.{table}" does not exist', code="42P01")


def _server_defaults(table: str, now: datetime) -> dict:
    if table == BLOGS_TABLE:
        return {"published_at": now, "updated_at": now}
    return {"created_at": now}


def _sort_desc(rows: list[dict], order_by: str) -> list[dict]:
    # Postgres DESC puts NULLs first.
    with_value = [r for r in rows if r.get(order_by) is not None]
    without_value = [r for r in rows if r.get(order_by) is None]
    with_value.sort(key=lambda r: r[order_by], reverse=True)
    return without_value + with_value


class _PublishingMixin:
    feed: Optional[ChangeFeed]

    def _publish(self, table: str, kind: ChangeKind, row_id: str) -> None:
        if self.feed is None:
            return
        self.feed.publish(ChangeEvent(table=table, kind=kind, record_id=row_id))


class InMemoryStoreClient(_PublishingMixin):
    """Simple in-memory store for development and tests."""

    def __init__(self, feed: Optional[ChangeFeed] = None):
        self.feed = feed
        self.tables: Dict[str, Dict[str, dict]] = {table: {} for table in TABLES}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            for rows in self.tables.values():
                rows.clear()
            self.calls.clear()

    def select_all(self, table: str, order_by: str) -> list[dict]:
        _check_table(table)
        with self._lock:
            self.calls.append(("select", table))
            rows = [copy.deepcopy(row) for row in self.tables[table].values()]
        return _sort_desc(rows, order_by)

    def insert(self, table: str, row: dict) -> dict:
        _check_table(table)
        record = {**row, **_server_defaults(table, _now())}
        record["id"] = uuid.uuid4().hex
        with self._lock:
            self.calls.append(("insert", table))
            self.tables[table][record["id"]] = record
            created = copy.deepcopy(record)
        self._publish(table, ChangeKind.INSERT, created["id"])
        return created

    def update(self, table: str, row_id: str, fields: dict) -> dict:
        _check_table(table)
        with self._lock:
            self.calls.append(("update", table))
            record = self.tables[table].get(row_id)
            if record is None:
                raise RowNotFoundError(table, row_id)
            record.update({k: v for k, v in fields.items() if k != "id"})
            if table == BLOGS_TABLE:
                record["updated_at"] = _now()
            updated = copy.deepcopy(record)
        self._publish(table, ChangeKind.UPDATE, row_id)
        return updated

    def delete(self, table: str, row_id: str) -> str:
        _check_table(table)
        with self._lock:
            self.calls.append(("delete", table))
            if self.tables[table].pop(row_id, None) is None:
                raise RowNotFoundError(table, row_id)
        self._publish(table, ChangeKind.DELETE, row_id)
        return row_id


class SqlStoreClient(_PublishingMixin):
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str, feed: Optional[ChangeFeed] = None):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlStoreClient")
        self.feed = feed
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _model(self, table: str):
        _check_table(table)
        return BlogRow if table == BLOGS_TABLE else ContactMessageRow

    def select_all(self, table: str, order_by: str) -> list[dict]:
        model = self._model(table)
        column = getattr(model, order_by, None)
        if column is None:
            raise StoreError(f"column {table}.{order_by} does not exist", code="42703")
        try:
            with self.Session() as session:
                stmt = select(model).order_by(column.is_(None).desc(), column.desc())
                return [row.as_dict() for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    def insert(self, table: str, row: dict) -> dict:
        model = self._model(table)
        values = {**row, **_server_defaults(table, _now())}
        values["id"] = uuid.uuid4().hex
        try:
            with self.Session() as session:
                instance = model(**values)
                session.add(instance)
                session.commit()
                session.refresh(instance)
                created = instance.as_dict()
        except (SQLAlchemyError, TypeError) as exc:
            raise StoreError(str(exc)) from exc
        self._publish(table, ChangeKind.INSERT, created["id"])
        return created

    def update(self, table: str, row_id: str, fields: dict) -> dict:
        model = self._model(table)
        try:
            with self.Session() as session:
                instance = session.get(model, row_id)
                if instance is None:
                    raise RowNotFoundError(table, row_id)
                for key, value in fields.items():
                    if key == "id" or not hasattr(model, key):
                        raise StoreError(
                            f"column {table}.{key} does not exist", code="42703"
                        )
                    setattr(instance, key, value)
                if table == BLOGS_TABLE:
                    instance.updated_at = _now()
                session.commit()
                session.refresh(instance)
                updated = instance.as_dict()
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        self._publish(table, ChangeKind.UPDATE, row_id)
        return updated

    def delete(self, table: str, row_id: str) -> str:
        model = self._model(table)
        try:
            with self.Session() as session:
                result = session.execute(delete(model).where(model.id == row_id))
                session.commit()
                if not result.rowcount:
                    raise RowNotFoundError(table, row_id)
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        self._publish(table, ChangeKind.DELETE, row_id)
        return row_id


Base = declarative_base()


class _RowMixin:
    def as_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}


class BlogRow(_RowMixin, Base):
    __tablename__ = BLOGS_TABLE

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    author = Column(String, nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    category = Column(String, nullable=True)
    tags = Column(JSON, nullable=True)
    image_url = Column(String, nullable=True)
    featured = Column(Boolean, nullable=True, default=False)
    status = Column(String, nullable=True, default="draft", index=True)
    seo_title = Column(String, nullable=True)
    seo_description = Column(Text, nullable=True)
    seo_keywords = Column(JSON, nullable=True)


class ContactMessageRow(_RowMixin, Base):
    __tablename__ = CONTACT_MESSAGES_TABLE

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="unread", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
