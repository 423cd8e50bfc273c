"""bin/seed_admin.py: first admin bootstrap and its refusal messages."""

import importlib.util
from pathlib import Path

import pytest

from accounts import store
from core.config import settings
from models.user import User

_SCRIPT = Path(__file__).resolve().parents[1] / "bin" / "seed_admin.py"


@pytest.fixture
def seed_admin(monkeypatch):
    spec = importlib.util.spec_from_file_location("seed_admin", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    monkeypatch.setattr(settings, "first_admin_username", "root")
    monkeypatch.setattr(settings, "first_admin_email", "Root@Example.com")
    monkeypatch.setattr(settings, "first_admin_password", "s3cret-admin")
    return module


def test_seed_creates_active_admin(seed_admin, session_factory, db, capsys):
    assert seed_admin.seed(session_factory) == 0

    admin = User.find_by_email(db, "root@example.com")
    assert admin.role == "admin"
    assert admin.status == "active"
    assert admin.email_verified is True
    assert "created successfully" in capsys.readouterr().out


def test_seed_is_idempotent(seed_admin, session_factory, db, capsys):
    seed_admin.seed(session_factory)
    capsys.readouterr()

    assert seed_admin.seed(session_factory) == 0
    assert "already exists" in capsys.readouterr().out
    assert db.query(User).count() == 1


def test_seed_reports_soft_deleted_email_holder(seed_admin, session_factory, db, capsys):
    ghost = store.create_user(db, "ghost", "root@example.com", "password123")
    db.commit()
    store.soft_delete_user(db, ghost.id)
    db.commit()

    assert seed_admin.seed(session_factory) == 1

    out = capsys.readouterr().out
    assert "deleted account" in out
    assert "already taken" not in out


def test_seed_reports_username_taken(seed_admin, session_factory, db, capsys):
    store.create_user(db, "root", "someone@example.com", "password123")
    db.commit()

    assert seed_admin.seed(session_factory) == 1
    assert "Username 'root' is already taken" in capsys.readouterr().out
