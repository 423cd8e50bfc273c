"""Account store: CRUD calls and their error kinds."""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from accounts import store
from core.errors import Conflict, InvalidReference, StorageFailure
from database import session_scope
from models.common import utcnow
from models.user import User
from models.user_session import UserSession


def _user(db, username="alice", email="alice@example.com", **fields):
    user = store.create_user(db, username, email, "password123", **fields)
    db.commit()
    return user


def test_create_user_hashes_password(db):
    user = _user(db)

    assert user.password_hash != "password123"
    assert user.validate_password("password123") is True
    assert User.find_by_email(db, "ALICE@example.com").id == user.id


def test_duplicate_email_any_case_is_conflict(db):
    _user(db, email="Test@Example.com")

    with pytest.raises(Conflict):
        store.create_user(db, "bob", "test@example.com", "password123")

    # the failed insert left the first user in place
    assert User.find_by_email(db, "test@example.com").username == "alice"


def test_duplicate_username_is_conflict(db):
    _user(db, username="alice")

    with pytest.raises(Conflict):
        store.create_user(db, "ALICE", "other@example.com", "password123")


def test_duplicate_refresh_token_is_conflict(db):
    user = _user(db)
    store.create_session(db, user.id, refresh_token="same-token")
    db.commit()

    with pytest.raises(Conflict):
        store.create_session(db, user.id, refresh_token="same-token")


def test_conflict_keeps_earlier_pending_work(db):
    user = _user(db)
    store.create_session(db, user.id, refresh_token="same-token")
    db.commit()

    # not committed yet when the conflicting insert fails
    store.create_user(db, "bob", "bob@example.com", "password123")
    with pytest.raises(Conflict):
        store.create_session(db, user.id, refresh_token="same-token")
    db.commit()

    assert User.find_by_username(db, "bob") is not None
    assert len(store.list_sessions(db, user.id)) == 1


def test_session_for_missing_user_is_invalid_reference(db):
    with pytest.raises(InvalidReference):
        store.create_session(db, uuid.uuid4(), refresh_token="orphan")


def test_session_for_soft_deleted_user_is_invalid_reference(db):
    user = _user(db)
    assert store.soft_delete_user(db, user.id) is True
    db.commit()

    with pytest.raises(InvalidReference):
        store.create_session(db, user.id)


def test_check_constraint_failure_is_storage_failure(db):
    # reset token without its expiry violates a CHECK constraint
    with pytest.raises(StorageFailure):
        store.create_user(db, "carol", "carol@example.com", "password123",
                          password_reset_token="dangling")


def test_create_session_defaults(db):
    user = _user(db)
    session = store.create_session(db, user.id, ip_address="10.0.0.1", user_agent="pytest")
    db.commit()

    assert session.status == "active"
    assert len(session.refresh_token) >= 64
    assert session.is_valid() is True
    lifetime = session.expires_at.replace(tzinfo=None) - utcnow().replace(tzinfo=None)
    assert timedelta(days=29) < lifetime <= timedelta(days=30)


def test_get_user_skips_soft_deleted_unless_asked(db):
    user = _user(db)
    store.soft_delete_user(db, user.id)
    db.commit()

    assert store.get_user(db, user.id) is None
    assert store.get_user(db, user.id, include_deleted=True).id == user.id
    assert store.soft_delete_user(db, user.id) is False


def test_soft_delete_revokes_active_sessions(db):
    user = _user(db)
    session = store.create_session(db, user.id)
    db.commit()

    store.soft_delete_user(db, user.id)
    db.commit()

    assert session.status == "revoked"
    assert session.revoke_reason == "account_deleted"


def test_delete_user_cascades_to_sessions(db):
    user = _user(db)
    ids = [store.create_session(db, user.id).id for _ in range(3)]
    db.commit()
    user_id = user.id

    assert store.delete_user(db, user_id) is True
    db.commit()
    db.expunge_all()

    assert store.get_user(db, user_id, include_deleted=True) is None
    assert store.list_sessions(db, user_id) == []
    for session_id in ids:
        assert store.get_session(db, session_id) is None
    assert db.query(UserSession).count() == 0


def test_delete_missing_user_returns_false(db):
    assert store.delete_user(db, uuid.uuid4()) is False


def test_update_user_fields_and_password(db):
    user = _user(db)

    store.update_user(db, user, first_name="Alice", status="active", password="n3w-pass")
    db.commit()

    assert user.first_name == "Alice"
    assert user.status == "active"
    assert user.validate_password("n3w-pass") is True


def test_update_user_email_conflict(db):
    _user(db, username="alice", email="alice@example.com")
    bob = _user(db, username="bob", email="bob@example.com")

    with pytest.raises(Conflict):
        store.update_user(db, bob, email="ALICE@example.com")


def test_update_user_unknown_field(db):
    user = _user(db)
    with pytest.raises(AttributeError):
        store.update_user(db, user, nickname="ally")


def test_update_user_rejects_before_assigning_anything(db):
    user = _user(db, first_name="Alice")

    with pytest.raises(AttributeError):
        store.update_user(db, user, first_name="Changed", nickname="ally")

    assert user.first_name == "Alice"
    assert not db.dirty


@pytest.mark.parametrize(
    "field", ["validate_password", "set_password", "sessions", "id", "password_hash"]
)
def test_update_user_refuses_non_column_and_protected_names(db, field):
    user = _user(db)
    original_hash = user.password_hash

    with pytest.raises(AttributeError):
        store.update_user(db, user, **{field: "x"})

    assert user.password_hash == original_hash
    assert user.validate_password("password123") is True


def test_update_user_invalid_value_leaves_user_unchanged(db):
    user = _user(db, first_name="Alice")

    with pytest.raises(ValueError):
        store.update_user(db, user, first_name="Changed", email="not-an-email")
    db.commit()

    db.expire_all()
    assert db.get(User, user.id).first_name == "Alice"


def test_revoke_session_and_list_active(db):
    user = _user(db)
    keep = store.create_session(db, user.id)
    drop = store.create_session(db, user.id)
    db.commit()

    assert store.revoke_session(db, drop.id, reason="logout") is True
    assert store.revoke_session(db, drop.id) is False
    assert store.revoke_session(db, uuid.uuid4()) is False
    db.commit()

    assert [s.id for s in store.list_sessions(db, user.id, active_only=True)] == [keep.id]


def test_sweep_expired_sessions(db):
    user = _user(db)
    store.create_session(db, user.id, expires_at=utcnow() - timedelta(minutes=5))
    store.create_session(db, user.id, expires_at=utcnow() + timedelta(minutes=5))
    db.commit()

    assert store.sweep_expired_sessions(db) == 1
    db.commit()
    assert store.sweep_expired_sessions(db) == 0


def test_session_scope_commits(session_factory):
    with session_scope(session_factory) as db:
        store.create_user(db, "dave", "dave@example.com", "password123")

    with session_scope(session_factory) as db:
        assert User.find_by_email(db, "dave@example.com") is not None


def test_session_scope_rolls_back_on_error(session_factory):
    with pytest.raises(RuntimeError):
        with session_scope(session_factory) as db:
            store.create_user(db, "erin", "erin@example.com", "password123")
            raise RuntimeError("boom")

    with session_scope(session_factory) as db:
        assert User.find_by_email(db, "erin@example.com") is None


def test_session_scope_translates_database_errors(session_factory):
    with pytest.raises(StorageFailure) as info:
        with session_scope(session_factory):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    assert isinstance(info.value.__cause__, OperationalError)


def test_session_scope_passes_store_errors_through(session_factory):
    with session_scope(session_factory) as db:
        store.create_user(db, "frank", "frank@example.com", "password123")

    with pytest.raises(Conflict):
        with session_scope(session_factory) as db:
            store.create_user(db, "frank2", "FRANK@example.com", "password123")
