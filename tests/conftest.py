"""Shared fixtures: in-memory SQLite session, a fake provider, and an API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.database import Base, get_db
from database.models import User


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def row_count(db):
    """Number of rows currently stored for a model."""
    return lambda model: db.query(model).count()


@pytest.fixture
def owner(db):
    user = User(email="owner@example.com", full_name="Quiz Owner")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db):
    user = User(email="student@example.com", full_name="Student")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def quiz_json():
    """A well-formed provider payload with three multiple-choice questions."""
    return {
        "title": "Cell Biology",
        "questions": [
            {
                "questionText": "Which organelle produces ATP?",
                "options": ["Nucleus", "Mitochondria", "Ribosome"],
                "correctAnswer": "Mitochondria",
                "type": "multiple-choice",
            },
            {
                "questionText": "What is the basic unit of life?",
                "options": ["Atom", "Cell", "Organ"],
                "correctAnswer": "Cell",
                "type": "multiple-choice",
            },
            {
                "questionText": "Which structure holds DNA?",
                "options": ["Nucleus", "Membrane", "Vacuole"],
                "correctAnswer": "Nucleus",
                "type": "multiple-choice",
            },
        ],
    }


@pytest.fixture
def provider(quiz_json):
    """Fake generation client; by default returns the payload as fenced JSON text."""
    fake = AsyncMock()
    fake.complete.return_value = "Sure! Here is your quiz:\n```json\n" + json.dumps(quiz_json) + "\n```\nGood luck!"
    return fake


@pytest.fixture
def api(engine, provider):
    """TestClient bound to the test database and the fake provider."""
    from quiz_api import app

    testing_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = testing_session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.generation_client = provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.generation_client = None
