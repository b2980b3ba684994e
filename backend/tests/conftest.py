import os

# Settings are read on first import of the app; keep tests off the real database.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("SCHEMA_BOOTSTRAP_ON_STARTUP", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from classtime.api.deps import get_db  # noqa: E402
from classtime.core.security import create_access_token  # noqa: E402
from classtime.db.base import Base  # noqa: E402
from classtime.main import app  # noqa: E402
from classtime.models.classroom import Classroom, ClassroomType  # noqa: E402
from classtime.models.course import Course  # noqa: E402
from classtime.models.user import User, UserRole  # noqa: E402


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    counter = {"value": 0}

    def _make_user(role: UserRole = UserRole.admin, name: str | None = None) -> User:
        counter["value"] += 1
        user = User(
            name=name or f"{role.value.title()} {counter['value']}",
            email=f"{role.value}{counter['value']}@example.com",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_course(db_session):
    counter = {"value": 0}

    def _make_course(code: str | None = None, teachers: list[User] | None = None) -> Course:
        counter["value"] += 1
        course = Course(code=code or f"CS{100 + counter['value']}", name=f"Course {counter['value']}")
        course.teachers = list(teachers or [])
        db_session.add(course)
        db_session.commit()
        db_session.refresh(course)
        return course

    return _make_course


@pytest.fixture()
def make_classroom(db_session):
    counter = {"value": 0}

    def _make_classroom(room_label: str | None = None, capacity: int = 40) -> Classroom:
        counter["value"] += 1
        classroom = Classroom(
            room_label=room_label or f"R-{counter['value']:03d}",
            building="Main",
            capacity=capacity,
            type=ClassroomType.lecture,
        )
        db_session.add(classroom)
        db_session.commit()
        db_session.refresh(classroom)
        return classroom

    return _make_classroom


@pytest.fixture()
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
