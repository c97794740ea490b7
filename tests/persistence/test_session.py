import pytest

from recordkit.adapters import (
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    MemoryAdapter,
    drop_database,
)
from recordkit.core import IntegerField, Model, StringField
from recordkit.persistence import PrimaryKeyMissingError, RecordNotFound, Session


class User(Model):
    name = StringField(nullable=False)
    age = IntegerField(default=0)


class Membership(Model):
    club_id = IntegerField()
    user_id = IntegerField()
    role = StringField(default="member")

    class Meta:
        primary_key = ("club_id", "user_id")


def make_session(**options):
    config = ConnectionConfig(options=options or None)
    return Session(MemoryAdapter(), connection_config=config)


def test_save_assigns_auto_increment_key_and_marks_persisted():
    session = make_session()
    user = User(name="Alice", age=30)
    assert user.new_record
    session.save(user)
    assert user.id == 1
    assert user.persisted

    second = session.save(User(name="Bob"))
    assert second.id == 2
    session.close()


def test_auto_increment_respects_configured_start():
    session = make_session(auto_increment_start=100)
    user = session.save(User(name="Alice"))
    assert user.id == 100
    session.close()


def test_find_returns_fresh_equal_instances():
    session = make_session()
    user = session.save(User(name="Alice", age=30))

    first = session.find(User, user.id)
    second = session.find(User, user.id)
    assert first is not second
    assert first == second == user
    assert first.name == "Alice"
    assert first.age == 30
    session.close()


def test_find_missing_record_raises():
    session = make_session()
    with pytest.raises(RecordNotFound) as excinfo:
        session.find(User, 42)
    assert excinfo.value.model is User
    assert excinfo.value.lookups == {"id": 42}
    assert "Couldn't find User with id=42" in str(excinfo.value)
    assert session.find_by(User, id=42) is None
    session.close()


def test_find_checks_key_arity():
    session = make_session()
    with pytest.raises(ValueError):
        session.find(User, 1, 2)
    with pytest.raises(ValueError):
        session.find(Membership, 1)
    with pytest.raises(ValueError):
        session.find_by(User)
    session.close()


def test_composite_key_save_and_find():
    session = make_session()
    session.save(Membership(club_id=1, user_id=2, role="owner"))

    by_args = session.find(Membership, 1, 2)
    by_tuple = session.find(Membership, (1, 2))
    by_lookup = session.find_by(Membership, user_id=2, club_id=1)
    assert by_args == by_tuple == by_lookup
    assert by_args.role == "owner"
    assert by_args.pk == (1, 2)
    session.close()


def test_composite_key_requires_values():
    session = make_session()
    membership = Membership(club_id=1)
    with pytest.raises(PrimaryKeyMissingError):
        session.save(membership)
    assert membership.new_record
    session.close()


def test_duplicate_key_leaves_record_unsaved():
    session = make_session()
    session.save(Membership(club_id=1, user_id=2))
    duplicate = Membership(club_id=1, user_id=2)
    with pytest.raises(AdapterExecutionError):
        session.save(duplicate)
    assert duplicate.new_record
    session.close()


class RejectingAdapter(MemoryAdapter):
    def insert(self, table, row, key_columns):
        raise AdapterExecutionError("storage rejected the row")


def test_failed_insert_clears_assigned_auto_key():
    session = Session(RejectingAdapter())
    user = User(name="Alice")
    with pytest.raises(AdapterExecutionError):
        session.save(user)
    assert user.id is None
    assert user.new_record


def test_save_persisted_record_updates_row():
    session = make_session()
    user = session.save(User(name="Alice", age=30))
    user.age = 31
    session.save(user)
    assert session.find(User, user.id).age == 31
    assert session.adapter.row_count("user") == 1
    session.close()


def test_session_context_manager_closes_adapter():
    adapter = MemoryAdapter()
    with Session(adapter) as session:
        session.save(User(name="Alice"))
    with pytest.raises(AdapterConnectionError):
        adapter.select_first("user", ("id",), (1,))


def test_named_memory_databases_are_shared():
    config = ConnectionConfig.from_dsn("memory://shared_session_test")
    writer = Session(MemoryAdapter(), connection_config=config)
    reader = Session(MemoryAdapter(), connection_config=config)
    saved = writer.save(User(name="Shared"))
    assert reader.find(User, saved.id) == saved
    writer.close()
    reader.close()
    drop_database("shared_session_test")


def test_private_memory_databases_are_isolated():
    first = make_session()
    second = make_session()
    first.save(User(name="Alone"))
    assert second.find_by(User, id=1) is None
    first.close()
    second.close()
