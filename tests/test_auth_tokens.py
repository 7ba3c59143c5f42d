from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import HTTPException

from mentorhub.api.auth import read_me
from mentorhub.utils.security import (
    create_access_token,
    decode_access_token,
    get_current_user,
    resolve_user_from_token,
)


def test_token_round_trip_resolves_active_user(db_session, mentor):
    token = create_access_token({"sub": mentor.email, "role": mentor.role})

    claims = decode_access_token(token)
    assert claims.email == mentor.email
    assert claims.role == "mentor"
    assert resolve_user_from_token(db_session, token).id == mentor.id


def test_invalid_expired_or_missing_tokens_resolve_to_none(db_session, mentee):
    expired = create_access_token({"sub": mentee.email}, expires_delta=timedelta(minutes=-5))

    assert resolve_user_from_token(db_session, None) is None
    assert resolve_user_from_token(db_session, "not-a-jwt") is None
    assert resolve_user_from_token(db_session, expired) is None


def test_inactive_user_is_rejected(db_session, mentee):
    token = create_access_token({"sub": mentee.email})
    mentee.is_active = False
    db_session.commit()

    assert resolve_user_from_token(db_session, token) is None
    with pytest.raises(HTTPException) as exc:
        get_current_user(token=token, db=db_session)
    assert exc.value.status_code == 401


def test_read_me_returns_profile(mentor):
    assert read_me(current_user=mentor) is mentor


def test_bootstrap_admin_refuses_without_opt_in(session_factory, monkeypatch, capsys):
    from mentorhub.scripts import bootstrap_admin

    monkeypatch.delenv("ENABLE_ADMIN_BOOTSTRAP", raising=False)

    assert bootstrap_admin.bootstrap_admin(session_factory) == 1
    assert "Bootstrap disabled" in capsys.readouterr().err


def test_bootstrap_admin_blocked_when_admin_exists(session_factory, make_user, monkeypatch, capsys):
    from mentorhub.scripts import bootstrap_admin

    make_user("admin", approved=True)
    monkeypatch.setenv("ENABLE_ADMIN_BOOTSTRAP", "true")
    monkeypatch.setenv("ADMIN_BOOTSTRAP_CONFIRM", bootstrap_admin.CONFIRM_PHRASE)
    monkeypatch.setenv("ADMIN_NAME", "Root Admin")
    monkeypatch.setenv("ADMIN_EMAIL", "root@test.edu")
    monkeypatch.setenv("ADMIN_PASSWORD", "Sup3rSecret")

    assert bootstrap_admin.bootstrap_admin(session_factory) == 1
    assert "an admin already exists" in capsys.readouterr().err
