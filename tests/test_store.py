"""
Tests for the single-document store: seeding, load/save, teardown, failures.
"""

from __future__ import annotations

import pytest

from shipmaint import store as store_module
from shipmaint.store import DocumentStore, StorageError


def test_initialize_seeds_once(tmp_path) -> None:
    """Second initialize is a no-op and never duplicates seed data."""
    s = DocumentStore(tmp_path / "db.sqlite")
    assert s.initialize() is True
    assert s.initialize() is False
    data = s.load()
    assert len(data["users"]) == 3
    assert [x["id"] for x in data["ships"]] == ["s1", "s2"]
    assert [x["id"] for x in data["components"]] == ["c1", "c2"]
    assert [x["id"] for x in data["jobs"]] == ["j1"]
    assert [x["id"] for x in data["notifications"]] == ["n1"]


def test_initialize_keeps_existing_document(store: DocumentStore) -> None:
    data = store.load()
    data["ships"] = []
    store.save(data)
    assert store.initialize() is False
    assert store.load()["ships"] == []


def test_load_without_document_returns_seed_without_persisting(tmp_path) -> None:
    s = DocumentStore(tmp_path / "db.sqlite")
    data = s.load()
    assert data["ships"][0]["name"] == "Ever Given"
    assert s.exists() is False


def test_seed_notification_shape(store: DocumentStore) -> None:
    n = store.load()["notifications"][0]
    assert n["type"] == "JobCreated"
    assert n["message"] == "New inspection job created for Main Engine on Ever Given"
    assert n["read"] is False
    assert n["jobId"] == "j1"
    assert n["timestamp"].endswith("Z")


def test_clear_then_initialize_reseeds(store: DocumentStore) -> None:
    store.save({**store.load(), "ships": []})
    store.clear()
    assert store.exists() is False
    assert store.initialize() is True
    assert len(store.load()["ships"]) == 2


def test_separate_keys_are_separate_documents(tmp_path) -> None:
    a = DocumentStore(tmp_path / "db.sqlite", key="a")
    b = DocumentStore(tmp_path / "db.sqlite", key="b")
    a.initialize()
    a.save({**a.load(), "ships": []})
    b.initialize()
    assert a.load()["ships"] == []
    assert len(b.load()["ships"]) == 2


def test_corrupt_document_raises_storage_error(store: DocumentStore) -> None:
    with store.connect() as con:
        con.execute("UPDATE kv_store SET value=? WHERE key=?", ("{not json", store.key))
        con.commit()
    with pytest.raises(StorageError):
        store.load()


@pytest.mark.parametrize("value", ["[]", "null", "\"x\"", "42"])
def test_non_object_document_raises_storage_error(store: DocumentStore, value: str) -> None:
    """Valid JSON that is not an object is still a corrupt document."""
    with store.connect() as con:
        con.execute("UPDATE kv_store SET value=? WHERE key=?", (value, store.key))
        con.commit()
    with pytest.raises(StorageError):
        store.load()


def test_null_collection_loads_as_empty(store: DocumentStore) -> None:
    store.save({**store.load(), "jobs": None})
    data = store.load()
    assert data["jobs"] == []
    assert len(data["ships"]) == 2


def test_non_list_collection_raises_storage_error(store: DocumentStore) -> None:
    store.save({**store.load(), "ships": {"s1": "Ever Given"}})
    with pytest.raises(StorageError):
        store.load()


def test_failed_transaction_writes_nothing(store: DocumentStore) -> None:
    with pytest.raises(RuntimeError):
        with store.transaction() as data:
            data["ships"] = []
            raise RuntimeError("abort")
    assert len(store.load()["ships"]) == 2


def test_schema_is_created_once_per_store(store: DocumentStore, monkeypatch) -> None:
    """After the first use, reads and writes no longer run the DDL."""
    monkeypatch.setattr(store_module, "SCHEMA_SQL", "NOT VALID SQL;")
    data = store.load()
    store.save(data)
    assert store.exists() is True
    store.clear()
    assert store.exists() is False
    store.load()


def test_unopenable_database_raises_storage_error(tmp_path) -> None:
    """A directory is not a database file."""
    s = DocumentStore(tmp_path)
    with pytest.raises(StorageError):
        s.initialize()
