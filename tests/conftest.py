"""Pytest configuration and shared fixtures."""
import os
import uuid

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import reset_settings
from database import enable_sqlite_foreign_keys, get_db
from shared.models.entities import (
    Base,
    LessonPlan,
    Observation,
    School,
    Supervisor,
    TPAssignment,
    Trainee,
)
from shared.services.event_bus import EventBus
from main import app


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached per process; drop the cache around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(scope="function")
def db_session():
    """
    Create a test database session with in-memory SQLite.

    StaticPool keeps a single connection so the TestClient's worker thread
    sees the same in-memory database as the test.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def client(db_session):
    """Test client whose requests share the test's database session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def event_log():
    """An EventBus that records every published event."""
    bus = EventBus()
    events = []
    bus.subscribe(events.append)
    bus.events = events
    return bus


@pytest.fixture
def fail_commits(db_session, mocker):
    """Call to make every later commit on the test session fail like a lost connection."""

    def _patch():
        return mocker.patch.object(
            db_session,
            "commit",
            side_effect=OperationalError("COMMIT", {}, Exception("database is locked")),
        )

    return _patch


# ---------------------------------------------------------------------------
# Placement fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def school(db_session):
    school = School(id="school-1", name="Greenfield Primary", address="12 Hill Road")
    db_session.add(school)
    db_session.commit()
    return school


@pytest.fixture
def trainee(db_session):
    trainee = Trainee(id="trainee-1", reg_no="TP2025-001", name="Amara", surname="Okafor",
                      email="amara@example.edu")
    db_session.add(trainee)
    db_session.commit()
    return trainee


@pytest.fixture
def other_trainee(db_session):
    trainee = Trainee(id="trainee-2", reg_no="TP2025-002", name="Jonas", surname="Berg")
    db_session.add(trainee)
    db_session.commit()
    return trainee


@pytest.fixture
def supervisor(db_session):
    supervisor = Supervisor(id="supervisor-1", staff_id="ST-100", name="Ruth", surname="Mensah")
    db_session.add(supervisor)
    db_session.commit()
    return supervisor


@pytest.fixture
def other_supervisor(db_session):
    """A supervisor with no TP assignments."""
    supervisor = Supervisor(id="supervisor-2", staff_id="ST-200", name="Kofi", surname="Asante")
    db_session.add(supervisor)
    db_session.commit()
    return supervisor


@pytest.fixture
def assignment(db_session, trainee, supervisor, school):
    """TP assignment linking trainee-1 to supervisor-1 at school-1."""
    assignment = TPAssignment(
        id="tp-1",
        trainee_id=trainee.id,
        supervisor_id=supervisor.id,
        school_id=school.id,
        start_date="2025-01-06",
        end_date="2025-03-28",
    )
    db_session.add(assignment)
    db_session.commit()
    return assignment


# ---------------------------------------------------------------------------
# Workflow fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def draft():
    """A complete, valid lesson plan draft."""
    return {
        "title": "Fractions",
        "subject": "Math",
        "class_name": "5A",
        "date": "2025-02-10",
        "start_time": "09:00",
        "end_time": "09:45",
        "objectives": "Compare fractions with like denominators",
        "activities": "Fraction strips, pair work",
        "resources": "Fraction strips, worksheet",
    }


@pytest.fixture
def make_plan(db_session):
    """Factory inserting a lesson plan directly in a given status."""

    def _make(trainee_id="trainee-1", status="PENDING", title="Fractions", **overrides):
        plan = LessonPlan(
            id=overrides.pop("id", str(uuid.uuid4())),
            trainee_id=trainee_id,
            title=title,
            subject=overrides.pop("subject", "Math"),
            class_name=overrides.pop("class_name", "5A"),
            date=overrides.pop("date", "2025-02-10"),
            start_time=overrides.pop("start_time", "09:00"),
            end_time=overrides.pop("end_time", "09:45"),
            objectives="Compare fractions",
            activities="Fraction strips",
            resources="Worksheet",
            status=status,
            **overrides,
        )
        db_session.add(plan)
        db_session.commit()
        return plan

    return _make


@pytest.fixture
def approved_plan(make_plan, assignment):
    return make_plan(status="APPROVED", id="plan-approved")


@pytest.fixture
def make_observation(db_session):
    """Factory inserting an observation directly in a given status."""

    def _make(lesson_plan_id, status="SCHEDULED", supervisor_id="supervisor-1",
              trainee_id="trainee-1", **overrides):
        observation = Observation(
            id=overrides.pop("id", str(uuid.uuid4())),
            supervisor_id=supervisor_id,
            trainee_id=trainee_id,
            lesson_plan_id=lesson_plan_id,
            date=overrides.pop("date", "2025-02-12"),
            start_time=overrides.pop("start_time", "10:00"),
            end_time=overrides.pop("end_time", "10:45"),
            status=status,
            **overrides,
        )
        db_session.add(observation)
        db_session.commit()
        return observation

    return _make
