"""Pytest bootstrap for project imports and a shared in-memory database."""

import os
from pathlib import Path
import sys

import pytest

# Settings are read at import time, so test defaults must exist first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Ensure project root is on sys.path so `import mentorhub` works uninstalled
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

pytest.importorskip("fastapi")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mentorhub.database import Base
from mentorhub.models.course import Course
from mentorhub.models.session import Session as SessionModel
from mentorhub.models.user import User


@pytest.fixture
def engine():
    # StaticPool keeps one connection so threadpool work sees the same database
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(role: str = "mentee", approved: bool = False, name: str = None) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=f"{role}{counter['n']}@test.edu",
            password_hash="hash",
            role=role,
            approved=approved,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def mentee(make_user):
    return make_user("mentee", name="Maya Mentee")


@pytest.fixture
def mentor(make_user):
    return make_user("mentor", approved=True, name="Omar Mentor")


@pytest.fixture
def course(db_session):
    course = Course(code="SE101", title="Software Engineering")
    db_session.add(course)
    db_session.commit()
    db_session.refresh(course)
    return course


@pytest.fixture
def make_session(db_session):
    """Insert a session row directly in the given status."""

    def _make(mentee: User, mentor: User, status: str = "requested", **fields) -> SessionModel:
        session = SessionModel(
            mentee_id=mentee.id,
            mentor_id=mentor.id,
            status=status,
            description=fields.pop("description", ""),
            **fields,
        )
        db_session.add(session)
        db_session.commit()
        db_session.refresh(session)
        return session

    return _make
