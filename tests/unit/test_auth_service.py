"""Unit tests for identity and tier resolution (app/services/auth_service.py)"""
import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.errors import SchemaNotProvisioned, TransientStorageUnavailable
from app.models.user import User
from app.services.auth_service import AuthService, extract_user_id, resolve_tier
from factories import NOW, USER_ID, UnreachableSession


def make_user(**fields):
    data = {"tier": "basic", "subscription_status": "FREE", "free_trial_until": None}
    data.update(fields)
    return SimpleNamespace(**data)


# ============================================================================
# Header Parsing
# ============================================================================

@pytest.mark.parametrize("authorization,header,expected", [
    (None, None, None),
    ("", USER_ID, None),
    ("Basic abc", USER_ID, None),
    ("Bearer some-session-token", USER_ID, USER_ID),
    ("Bearer some-session-token", None, None),
    (f"Bearer mock-token-{USER_ID}-1760450000", None, USER_ID),
    ("Bearer mock-token-42-1760450000", None, "42"),
    ("Bearer mock-token-1760450000", None, None),
])
def test_extract_user_id(authorization, header, expected):
    assert extract_user_id(authorization, header) == expected


# ============================================================================
# Tier Resolution
# ============================================================================

def test_no_user_is_visitor():
    assert resolve_tier(None, NOW) == "visitor"


@pytest.mark.parametrize("fields,expected", [
    ({}, "free"),
    ({"tier": "premium"}, "premium"),
    ({"subscription_status": "ACTIVE"}, "premium"),
    ({"subscription_status": "TRIALING"}, "premium"),
    ({"subscription_status": "CANCELLED"}, "free"),
    ({"free_trial_until": NOW + timedelta(days=3)}, "premium"),
    ({"free_trial_until": NOW - timedelta(seconds=1)}, "free"),
    ({"free_trial_until": datetime(2026, 10, 20, 0, 0)}, "premium"),  # naive, read back from SQLite
])
def test_resolve_tier(fields, expected):
    assert resolve_tier(make_user(**fields), NOW) == expected


# ============================================================================
# Identity Resolution
# ============================================================================

def test_resolve_identity_for_known_user(db_session):
    db_session.add(User(id=USER_ID, subscription_status="ACTIVE"))
    db_session.commit()

    identity = AuthService(db_session).resolve_identity(f"Bearer mock-token-{USER_ID}-1760450000")

    assert identity.user_id == USER_ID
    assert identity.tier == "premium"
    assert not identity.is_visitor


def test_resolve_identity_for_unknown_user_is_visitor(db_session):
    identity = AuthService(db_session).resolve_identity("Bearer token", "missing-user")

    assert identity.is_visitor
    assert identity.tier == "visitor"


def test_resolve_identity_without_credentials_is_visitor(db_session):
    assert AuthService(db_session).resolve_identity(None).is_visitor


# ============================================================================
# Storage Failures
# ============================================================================

def test_user_lookup_on_unreachable_database_is_transient():
    session = UnreachableSession()

    with pytest.raises(TransientStorageUnavailable) as excinfo:
        AuthService(session).resolve_identity("Bearer token", USER_ID)

    assert excinfo.value.context["operation"] == "get_user_by_id"
    assert session.rollbacks == 1


def test_user_lookup_without_users_table_is_schema_not_provisioned():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    session = sessionmaker(bind=engine)()
    try:
        with pytest.raises(SchemaNotProvisioned):
            AuthService(session).get_user_by_id(USER_ID)
    finally:
        session.close()
        engine.dispose()
