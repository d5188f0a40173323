"""Record store: seeding, whole-collection overwrite and serialization failures."""

import pytest

from helpdesk.config import Settings
from helpdesk.core.exceptions import StorageException
from helpdesk.domain.repositories.record_store import (
    COLLECTIONS,
    CURRENT_SESSION,
    PROBLEM_TYPES,
    TICKETS,
)
from helpdesk.infrastructure.database import build_engine
from helpdesk.infrastructure.record_store import (
    InMemoryRecordStore,
    SQLAlchemyRecordStore,
    build_record_store,
)


@pytest.fixture
def sql_store():
    store = SQLAlchemyRecordStore(build_engine("sqlite://"))
    store.create_schema()
    return store


@pytest.fixture(params=["memory", "sqlalchemy"])
def any_store(request, sql_store):
    if request.param == "memory":
        return InMemoryRecordStore()
    return sql_store


def test_initialize_seeds_problem_types_and_empty_collections(any_store):
    any_store.initialize()

    problem_types = any_store.get(PROBLEM_TYPES)
    assert [pt["id"] for pt in problem_types] == [str(i) for i in range(1, 10)]
    assert all(pt["is_active"] for pt in problem_types)
    assert problem_types[1]["name"] == "Impressora com Defeito"
    for collection in COLLECTIONS:
        assert any_store.exists(collection)
    assert any_store.get(TICKETS) == []


def test_initialize_does_not_overwrite_existing_collections(any_store):
    any_store.put(PROBLEM_TYPES, [{"id": "x", "name": "Custom", "is_active": False}])
    any_store.put(TICKETS, [{"id": "t1"}])

    any_store.initialize()
    any_store.initialize()

    assert any_store.get(PROBLEM_TYPES) == [{"id": "x", "name": "Custom", "is_active": False}]
    assert any_store.get(TICKETS) == [{"id": "t1"}]


def test_put_overwrites_the_whole_collection(any_store):
    any_store.put(TICKETS, [{"id": "a"}, {"id": "b"}])
    any_store.put(TICKETS, [{"id": "c"}])

    assert any_store.get(TICKETS) == [{"id": "c"}]


def test_missing_collection_reads_as_empty(any_store):
    assert any_store.get(CURRENT_SESSION) == []
    assert not any_store.exists(CURRENT_SESSION)


def test_delete_removes_key(any_store):
    any_store.put(CURRENT_SESSION, [{"id": "u1"}])
    any_store.delete(CURRENT_SESSION)
    any_store.delete(CURRENT_SESSION)

    assert not any_store.exists(CURRENT_SESSION)


def test_unserializable_records_raise_storage_error(any_store):
    with pytest.raises(StorageException) as exc:
        any_store.put(TICKETS, [{"id": "a", "when": object()}])
    assert exc.value.code == "StorageError"


def test_corrupted_json_raises_storage_error():
    store = InMemoryRecordStore()
    store._data[store.key_for(TICKETS)] = "{not json"

    with pytest.raises(StorageException):
        store.get(TICKETS)


def test_non_array_payload_raises_storage_error():
    store = InMemoryRecordStore()
    store._data[store.key_for(TICKETS)] = '{"id": "a"}'

    with pytest.raises(StorageException):
        store.get(TICKETS)


def test_keys_are_namespaced():
    store = InMemoryRecordStore(namespace="support_system")
    store.put(TICKETS, [])

    assert "support_system_tickets" in store._data


def test_sqlalchemy_store_shares_data_through_the_database():
    engine = build_engine("sqlite://")
    first = SQLAlchemyRecordStore(engine)
    first.create_schema()
    first.put(TICKETS, [{"id": "a", "title": "Sem internet"}])

    second = SQLAlchemyRecordStore(engine)
    assert second.get(TICKETS) == [{"id": "a", "title": "Sem internet"}]


def test_build_record_store_selects_backend():
    memory = build_record_store(Settings(STORE_BACKEND="memory"))
    assert isinstance(memory, InMemoryRecordStore)

    sql = build_record_store(Settings(STORE_BACKEND="sqlalchemy", DATABASE_URL="sqlite://"))
    assert isinstance(sql, SQLAlchemyRecordStore)
    sql.initialize()
    assert len(sql.get(PROBLEM_TYPES)) == 9

    with pytest.raises(ValueError):
        build_record_store(Settings(STORE_BACKEND="redis"))


def test_non_object_element_raises_storage_error(any_store):
    any_store.put(TICKETS, [{"id": "a"}, "b"])

    with pytest.raises(StorageException) as exc:
        any_store.get(TICKETS)
    assert exc.value.details["position"] == 1
