"""
Row store abstracting storage (SQLAlchemy vs Firebase Firestore).

Services talk to the store in plain dict rows keyed by the logical table
names below, so the same code runs against either backend.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple
from urllib.parse import quote

from google.api_core import exceptions as google_exceptions
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import models  # noqa: F401  tables register on Base.metadata
from app.core.config import settings
from app.core.db import Base
from app.core.errors import StoreConflict, StoreUnavailable
from app.services.firebase_client import get_firestore_client

logger = logging.getLogger(__name__)

# Unique key of every logical table. Upserts match on these fields and the
# Firestore backend derives document ids from them.
TABLE_KEYS: Dict[str, Tuple[str, ...]] = {
    "venues": ("id",),
    "tables": ("id",),
    "venue_tables": ("venue_id", "table_id"),
    "event_exceptions": ("date", "venue_id"),
    "table_exceptions": ("venue_id", "table_id", "event_date"),
    "registrations": ("user_name", "event_date"),
    "comments": ("id",),
    "gallery_photos": ("id",),
}

# Firestore caps the number of values in a single "in" filter
FIRESTORE_IN_LIMIT = 30


def use_firestore() -> bool:
    return settings.USE_FIREBASE is True


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "==", value)


def in_(field: str, values: Iterable[Any]) -> Filter:
    return Filter(field, "in", list(values))


def gte(field: str, value: Any) -> Filter:
    return Filter(field, ">=", value)


def lte(field: str, value: Any) -> Filter:
    return Filter(field, "<=", value)


class RowStore(Protocol):
    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]: ...

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]: ...

    def update(self, table: str, where: Dict[str, Any], values: Dict[str, Any]) -> int: ...

    def upsert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]: ...

    def delete(self, table: str, where: Dict[str, Any]) -> int: ...


def _key_of(table: str, row: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return {field: row[field] for field in TABLE_KEYS[table]}
    except KeyError as exc:
        raise ValueError(f"Row for {table} is missing key field {exc}") from exc


def _matches(row: Dict[str, Any], flt: Filter) -> bool:
    value = row.get(flt.field)
    if flt.op == "==":
        return value == flt.value
    if flt.op == "in":
        return value in flt.value
    if value is None:
        return False
    if flt.op == ">=":
        return value >= flt.value
    if flt.op == "<=":
        return value <= flt.value
    raise ValueError(f"Unsupported filter operator: {flt.op}")


def sort_rows(rows: List[Dict[str, Any]], order_by: Sequence[str]) -> List[Dict[str, Any]]:
    """Stable multi-key sort; a leading "-" sorts that field descending, None last"""
    result = list(rows)
    for key in reversed(order_by):
        descending = key.startswith("-")
        field = key.lstrip("-")
        present = [r for r in result if r.get(field) is not None]
        missing = [r for r in result if r.get(field) is None]
        present.sort(key=lambda r: r[field], reverse=descending)
        result = present + missing
    return result


# -------- SQLAlchemy backend --------

class SqlRowStore:
    """Row store over the SQLAlchemy tables declared in ``app.models``"""

    def __init__(self, db: Session):
        self.db = db

    def _table(self, name: str):
        return Base.metadata.tables[name]

    @contextmanager
    def _translate_errors(self, action: str, table: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            raise StoreConflict(f"Conflicting {table} row", {"table": table}) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Store {action} on {table} failed: {exc}")
            raise StoreUnavailable() from exc

    def _where(self, tbl, filters: Iterable[Filter]):
        clauses = []
        for flt in filters:
            column = tbl.c[flt.field]
            if flt.op == "==":
                clauses.append(column.is_(None) if flt.value is None else column == flt.value)
            elif flt.op == "in":
                clauses.append(column.in_(flt.value))
            elif flt.op == ">=":
                clauses.append(column >= flt.value)
            elif flt.op == "<=":
                clauses.append(column <= flt.value)
            else:
                raise ValueError(f"Unsupported filter operator: {flt.op}")
        return clauses

    def select(self, table, filters=(), order_by=(), limit=None):
        tbl = self._table(table)
        stmt = select(tbl).where(*self._where(tbl, filters))
        for key in order_by:
            column = tbl.c[key.lstrip("-")]
            stmt = stmt.order_by(column.desc() if key.startswith("-") else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._translate_errors("select", table):
            rows = self.db.execute(stmt).mappings().all()
        return [dict(r) for r in rows]

    def insert(self, table, row):
        tbl = self._table(table)
        with self._translate_errors("insert", table):
            self.db.execute(insert(tbl).values(**row))
            self.db.commit()
        return dict(row)

    def update(self, table, where, values):
        tbl = self._table(table)
        stmt = update(tbl).where(*self._where(tbl, [eq(k, v) for k, v in where.items()])).values(**values)
        with self._translate_errors("update", table):
            result = self.db.execute(stmt)
            self.db.commit()
        return result.rowcount

    def upsert(self, table, row):
        tbl = self._table(table)
        key = _key_of(table, row)
        key_clauses = self._where(tbl, [eq(k, v) for k, v in key.items()])
        with self._translate_errors("upsert", table):
            existing = self.db.execute(select(tbl).where(*key_clauses)).first()
            if existing is None:
                self.db.execute(insert(tbl).values(**row))
            else:
                self.db.execute(update(tbl).where(*key_clauses).values(**row))
            self.db.commit()
        return dict(row)

    def delete(self, table, where):
        tbl = self._table(table)
        stmt = delete(tbl).where(*self._where(tbl, [eq(k, v) for k, v in where.items()]))
        with self._translate_errors("delete", table):
            result = self.db.execute(stmt)
            self.db.commit()
        return result.rowcount


# -------- Firestore backend --------

class FirestoreRowStore:
    """Row store over top-level Firestore collections named after the tables.

    Document ids are built from the table's unique key, so inserts of an
    existing key fail with ``StoreConflict`` and upserts overwrite in place.
    Ordering and limits are applied client side to avoid composite indexes.
    """

    def __init__(self, client):
        self.client = client

    @staticmethod
    def document_id(table: str, row: Dict[str, Any]) -> str:
        key = _key_of(table, row)
        return "|".join(quote(str(key[field]), safe="") for field in TABLE_KEYS[table])

    @contextmanager
    def _translate_errors(self, action: str, table: str) -> Iterator[None]:
        try:
            yield
        except (google_exceptions.AlreadyExists, google_exceptions.Conflict) as exc:
            raise StoreConflict(f"Conflicting {table} row", {"table": table}) from exc
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as exc:
            logger.error(f"Firestore {action} on {table} failed: {exc}")
            raise StoreUnavailable() from exc

    def _query(self, table: str, filters: Sequence[Filter]):
        collection = self.client.collection(table)
        in_filters = [f for f in filters if f.op == "in"]
        other = [f for f in filters if f.op != "in"]

        if not in_filters:
            query = collection
            for flt in other:
                query = query.where(flt.field, flt.op, flt.value)
            return [(d.id, d.to_dict()) for d in query.get()]

        # One server-side "in" filter, chunked; anything else is checked locally
        primary, rest = in_filters[0], in_filters[1:] + other
        values = list(dict.fromkeys(primary.value))
        found = []
        for start in range(0, len(values), FIRESTORE_IN_LIMIT):
            chunk = values[start:start + FIRESTORE_IN_LIMIT]
            docs = collection.where(primary.field, "in", chunk).get()
            found.extend((d.id, d.to_dict()) for d in docs)
        return [(doc_id, data) for doc_id, data in found if all(_matches(data, f) for f in rest)]

    def select(self, table, filters=(), order_by=(), limit=None):
        if any(f.op == "in" and not f.value for f in filters):
            return []
        with self._translate_errors("select", table):
            rows = [data for _, data in self._query(table, filters)]
        rows = sort_rows(rows, order_by)
        return rows[:limit] if limit is not None else rows

    def insert(self, table, row):
        doc = self.client.collection(table).document(self.document_id(table, row))
        with self._translate_errors("insert", table):
            doc.create(dict(row))
        return dict(row)

    def update(self, table, where, values):
        collection = self.client.collection(table)
        key_fields = TABLE_KEYS[table]
        with self._translate_errors("update", table):
            matched = self._query(table, [eq(k, v) for k, v in where.items()])
            for doc_id, data in matched:
                merged = {**data, **values}
                new_id = self.document_id(table, merged)
                if new_id == doc_id:
                    collection.document(doc_id).set(values, merge=True)
                else:
                    # Key fields changed: move the document
                    collection.document(new_id).create(merged)
                    collection.document(doc_id).delete()
        if any(field in values for field in key_fields):
            logger.info(f"Re-keyed {len(matched)} {table} document(s)")
        return len(matched)

    def upsert(self, table, row):
        doc = self.client.collection(table).document(self.document_id(table, row))
        with self._translate_errors("upsert", table):
            doc.set(dict(row))
        return dict(row)

    def delete(self, table, where):
        collection = self.client.collection(table)
        with self._translate_errors("delete", table):
            if set(where) == set(TABLE_KEYS[table]):
                doc = collection.document(self.document_id(table, where))
                if not doc.get().exists:
                    return 0
                doc.delete()
                return 1
            matched = self._query(table, [eq(k, v) for k, v in where.items()])
            for doc_id, _ in matched:
                collection.document(doc_id).delete()
        return len(matched)


def open_store(db: Optional[Session] = None) -> RowStore:
    """Return the configured backend; the SQL backend needs a session"""
    if use_firestore():
        return FirestoreRowStore(get_firestore_client())
    if db is None:
        raise RuntimeError("A database session is required when Firestore is disabled")
    return SqlRowStore(db)
