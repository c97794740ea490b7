import threading

import pytest

from recordkit.adapters import (
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    MemoryAdapter,
    drop_database,
)


def connected(dsn="memory://"):
    adapter = MemoryAdapter()
    adapter.connect(ConnectionConfig.from_dsn(dsn))
    return adapter


def test_insert_and_select_by_key_and_other_columns():
    adapter = connected()
    adapter.insert("book", {"author_id": 1, "number": 2, "title": "Dawn"}, ("author_id", "number"))

    assert adapter.select_first("book", ("author_id", "number"), (1, 2))["title"] == "Dawn"
    assert adapter.select_first("book", ("number", "author_id"), (2, 1))["title"] == "Dawn"
    assert adapter.select_first("book", ("title",), ("Dawn",))["number"] == 2
    assert adapter.select_first("book", ("title",), ("Kindred",)) is None
    assert adapter.select_first("missing", ("id",), (1,)) is None


def test_rows_are_copied_in_and_out():
    adapter = connected()
    row = {"id": 1, "title": "Dawn"}
    adapter.insert("book", row, ("id",))
    row["title"] = "Changed"
    fetched = adapter.select_first("book", ("id",), (1,))
    fetched["title"] = "Changed again"
    assert adapter.select_first("book", ("id",), (1,))["title"] == "Dawn"


def test_insert_rejects_duplicates_and_incomplete_keys():
    adapter = connected()
    adapter.insert("book", {"id": 1}, ("id",))
    with pytest.raises(AdapterExecutionError):
        adapter.insert("book", {"id": 1}, ("id",))
    with pytest.raises(AdapterExecutionError):
        adapter.insert("book", {"id": None}, ("id",))
    with pytest.raises(AdapterExecutionError):
        adapter.insert("book", {"id": 2, "code": 3}, ("code",))


def test_update_requires_existing_row():
    adapter = connected()
    with pytest.raises(AdapterExecutionError):
        adapter.update("book", {"id": 1}, ("id",))


def test_next_id_skips_explicit_keys():
    adapter = connected()
    adapter.insert("book", {"id": 5}, ("id",))
    assert adapter.next_id("book", ("id",)) == 6
    assert adapter.next_id("book", ("id",)) == 7


def test_select_binds_matching_value_count():
    adapter = connected()
    with pytest.raises(AdapterExecutionError):
        adapter.select_first("book", ("id", "title"), (1,))


def test_operations_require_connection():
    adapter = MemoryAdapter()
    with pytest.raises(AdapterConnectionError):
        adapter.insert("book", {"id": 1}, ("id",))
    assert adapter.prepared_statements is True


def test_drop_database_resets_named_storage():
    adapter = connected("memory://drop_me")
    adapter.insert("book", {"id": 1}, ("id",))
    drop_database("drop_me")
    assert connected("memory://drop_me").row_count("book") == 0


def test_concurrent_next_id_is_unique():
    adapter = connected()
    barrier = threading.Barrier(4)
    ids: list[int] = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        for _ in range(100):
            value = adapter.next_id("book", ("id",))
            with lock:
                ids.append(value)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(ids) == list(range(1, 401))
