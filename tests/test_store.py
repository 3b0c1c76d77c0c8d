"""
Tests for the row store helpers and the SQL backend
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import models  # noqa: F401
from app.core.db import Base
from google.api_core import exceptions as google_exceptions

from app.core.errors import StoreConflict, StoreUnavailable
from app.services.store import FIRESTORE_IN_LIMIT, FirestoreRowStore, SqlRowStore, eq, gte, in_, lte, sort_rows

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_store.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def store():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield SqlRowStore(db)
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

def photo(photo_id, day, caption=""):
    return {"id": photo_id, "url": f"https://img.example/{photo_id}.jpg", "date": day, "caption": caption}

def test_sort_rows_multi_key_with_missing_values_last():
    rows = [
        {"id": "a", "sort_order": 2, "created_at": "2025-01-02"},
        {"id": "b", "sort_order": None, "created_at": "2025-01-01"},
        {"id": "c", "sort_order": 1, "created_at": "2025-01-03"},
        {"id": "d", "sort_order": 2, "created_at": "2025-01-01"},
    ]

    assert [r["id"] for r in sort_rows(rows, ["sort_order", "created_at"])] == ["c", "d", "a", "b"]
    assert [r["id"] for r in sort_rows(rows, ["-created_at"])] == ["c", "a", "b", "d"]

def test_document_id_is_built_from_the_unique_key():
    row = {"user_name": "Aiko Tanaka/Ben", "event_date": "2025-03-06", "table_type": "it"}

    assert FirestoreRowStore.document_id("registrations", row) == "Aiko%20Tanaka%2FBen|2025-03-06"
    assert FirestoreRowStore.document_id("venues", {"id": "mercy"}) == "mercy"

def test_document_id_requires_every_key_field():
    with pytest.raises(ValueError):
        FirestoreRowStore.document_id("table_exceptions", {"venue_id": "mercy", "table_id": "it"})

def test_select_filters_order_and_limit(store):
    for photo_id, day in (("p1", "2025-01-09"), ("p2", "2025-02-13"), ("p3", "2025-03-06")):
        store.insert("gallery_photos", photo(photo_id, day))

    in_range = store.select("gallery_photos", [gte("date", "2025-02-01"), lte("date", "2025-03-31")], order_by=("-date",))
    assert [r["id"] for r in in_range] == ["p3", "p2"]

    picked = store.select("gallery_photos", [in_("id", ["p1", "p3"])], order_by=("date",), limit=1)
    assert [r["id"] for r in picked] == ["p1"]

def test_eq_none_matches_null_columns(store):
    store.insert("registrations", {
        "id": "r1", "user_name": "Old Timer", "table_type": "it", "event_date": "2025-03-06",
        "venue_id": None, "created_at": "2024-01-01T00:00:00+00:00",
    })

    assert len(store.select("registrations", [eq("venue_id", None)])) == 1

def test_insert_duplicate_key_raises_conflict(store):
    store.insert("gallery_photos", photo("p1", "2025-01-09"))

    with pytest.raises(StoreConflict):
        store.insert("gallery_photos", photo("p1", "2025-01-10"))

    # The session is still usable after the rollback
    assert len(store.select("gallery_photos")) == 1

def test_upsert_inserts_then_overwrites(store):
    store.upsert("gallery_photos", photo("p1", "2025-01-09", "first"))
    store.upsert("gallery_photos", photo("p1", "2025-01-09", "second"))

    rows = store.select("gallery_photos")
    assert [r["caption"] for r in rows] == ["second"]

def test_update_and_delete_report_affected_rows(store):
    store.insert("gallery_photos", photo("p1", "2025-01-09"))

    assert store.update("gallery_photos", {"id": "p1"}, {"caption": "New Year"}) == 1
    assert store.update("gallery_photos", {"id": "missing"}, {"caption": "x"}) == 0
    assert store.delete("gallery_photos", {"id": "p1"}) == 1
    assert store.delete("gallery_photos", {"id": "p1"}) == 0

# -------- Firestore backend over an in-memory client --------

OPS = {
    "==": lambda value, target: value == target,
    "in": lambda value, target: value in target,
    ">=": lambda value, target: value is not None and value >= target,
    "<=": lambda value, target: value is not None and value <= target,
}

class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data)

class FakeDocument:
    def __init__(self, docs, doc_id):
        self.docs = docs
        self.id = doc_id

    def create(self, data):
        if self.id in self.docs:
            raise google_exceptions.AlreadyExists(f"Document {self.id} already exists")
        self.docs[self.id] = dict(data)

    def set(self, data, merge=False):
        if merge and self.id in self.docs:
            self.docs[self.id].update(data)
        else:
            self.docs[self.id] = dict(data)

    def delete(self):
        self.docs.pop(self.id, None)

    def get(self):
        return FakeSnapshot(self.id, self.docs.get(self.id))

class FakeQuery:
    def __init__(self, collection, clauses=()):
        self.collection = collection
        self.clauses = tuple(clauses)

    def where(self, field, op, value):
        if op == "in":
            self.collection.in_sizes.append(len(value))
        return FakeQuery(self.collection, self.clauses + ((field, op, value),))

    def get(self):
        return [
            FakeSnapshot(doc_id, data)
            for doc_id, data in self.collection.docs.items()
            if all(OPS[op](data.get(field), value) for field, op, value in self.clauses)
        ]

class FakeCollection(FakeQuery):
    def __init__(self):
        self.docs = {}
        self.in_sizes = []
        super().__init__(self)

    def document(self, doc_id):
        return FakeDocument(self.docs, doc_id)

class FakeFirestore:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())

class UnreachableFirestore:
    def collection(self, name):
        raise google_exceptions.ServiceUnavailable("firestore is down")

@pytest.fixture
def firestore():
    return FakeFirestore()

@pytest.fixture
def fs_store(firestore):
    return FirestoreRowStore(firestore)

def test_firestore_in_filter_is_split_into_chunks(firestore, fs_store):
    days = [f"2025-{month:02d}-{day:02d}" for month in (1, 2) for day in range(1, 29)] + ["2025-03-01", "2025-03-02", "2025-03-03"]
    for day in days:
        fs_store.insert("event_exceptions", {"date": day, "venue_id": "mercy", "is_cancelled": True, "note": None})

    rows = fs_store.select("event_exceptions", [in_("date", days + days[:5])], order_by=("date",))

    assert len(days) == 59
    assert [r["date"] for r in rows] == days
    assert firestore.collection("event_exceptions").in_sizes == [FIRESTORE_IN_LIMIT, 59 - FIRESTORE_IN_LIMIT]

def test_firestore_in_filter_combines_with_other_filters(fs_store):
    fs_store.insert("event_exceptions", {"date": "2025-03-06", "venue_id": "mercy", "is_cancelled": True, "note": None})
    fs_store.insert("event_exceptions", {"date": "2025-03-06", "venue_id": "t2", "is_cancelled": True, "note": None})

    rows = fs_store.select("event_exceptions", [in_("date", ["2025-03-06"]), eq("venue_id", "t2")])

    assert [r["venue_id"] for r in rows] == ["t2"]
    assert fs_store.select("event_exceptions", [in_("date", [])]) == []

def test_firestore_select_orders_and_limits_client_side(fs_store):
    for photo_id, day in (("p1", "2025-01-09"), ("p2", "2025-03-06"), ("p3", "2025-02-13")):
        fs_store.insert("gallery_photos", photo(photo_id, day))

    rows = fs_store.select("gallery_photos", [gte("date", "2025-02-01")], order_by=("-date",), limit=1)
    assert [r["id"] for r in rows] == ["p2"]

def test_firestore_duplicate_insert_raises_conflict(fs_store):
    registration = {"id": "r1", "user_name": "Aiko", "table_type": "it", "event_date": "2025-03-06"}
    fs_store.insert("registrations", registration)

    with pytest.raises(StoreConflict):
        fs_store.insert("registrations", {**registration, "id": "r2", "table_type": "free-talk"})

def test_firestore_upsert_overwrites_by_key(firestore, fs_store):
    key = {"venue_id": "mercy", "table_id": "it", "event_date": "2025-03-06"}
    fs_store.upsert("table_exceptions", {**key, "is_cancelled": True})
    fs_store.upsert("table_exceptions", {**key, "is_cancelled": False})

    assert list(firestore.collection("table_exceptions").docs.values()) == [{**key, "is_cancelled": False}]

def test_firestore_delete_by_full_key_reports_existence(fs_store):
    key = {"date": "2025-03-06", "venue_id": "mercy"}
    fs_store.upsert("event_exceptions", {**key, "is_cancelled": True, "note": "Holiday"})

    assert fs_store.delete("event_exceptions", key) == 1
    assert fs_store.delete("event_exceptions", key) == 0

def test_firestore_delete_by_partial_key_removes_every_match(fs_store):
    for venue_id in ("mercy", "t2"):
        fs_store.insert("venue_tables", {"venue_id": venue_id, "table_id": "it"})
    fs_store.insert("venue_tables", {"venue_id": "mercy", "table_id": "free-talk"})

    assert fs_store.delete("venue_tables", {"table_id": "it"}) == 2
    assert fs_store.select("venue_tables") == [{"venue_id": "mercy", "table_id": "free-talk"}]

def test_firestore_update_moves_document_when_key_changes(firestore, fs_store):
    fs_store.insert("tables", {"id": "japanese", "title": "Japanese Table", "sort_order": 2})

    assert fs_store.update("tables", {"id": "japanese"}, {"id": "ja", "title": "Japanese"}) == 1

    docs = firestore.collection("tables").docs
    assert list(docs) == ["ja"]
    assert docs["ja"] == {"id": "ja", "title": "Japanese", "sort_order": 2}

def test_firestore_update_in_place_merges_fields(firestore, fs_store):
    fs_store.insert("gallery_photos", photo("p1", "2025-01-09"))

    assert fs_store.update("gallery_photos", {"id": "p1"}, {"caption": "New Year"}) == 1
    assert fs_store.update("gallery_photos", {"id": "missing"}, {"caption": "x"}) == 0
    assert firestore.collection("gallery_photos").docs["p1"]["caption"] == "New Year"

def test_firestore_outage_raises_unavailable():
    with pytest.raises(StoreUnavailable):
        FirestoreRowStore(UnreachableFirestore()).select("venues")
