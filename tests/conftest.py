import os

# Settings are read at import time; point them at an in-memory database and disable SMTP
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REQUIRE_VERIFIED_EMAIL"] = "true"
os.environ.pop("EMAIL_HOST", None)
os.environ.pop("EMAIL_FROM_ADDRESS", None)

import pytest
from fastapi import HTTPException, status
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import learnhub.models  # noqa: F401 - registers every table with Base.metadata
from learnhub.core import dependencies
from learnhub.core.database import Base, get_db
from learnhub.crud import course_crud, user_crud
from learnhub.main import app
from learnhub.models.enums import ContentType, UserRole
from learnhub.schemas.course_schema import ModuleCreate, ChapterCreate, ContentCreate, QuizCreate
from learnhub.schemas.user_schema import UserCreateInternal


DEFAULT_QUESTIONS = [
    {
        "kind": "MULTIPLE_CHOICE",
        "question_text": "Which index holds the answer?",
        "options": ["zero", "one", "two", "three"],
        "correct_answer": 1,
        "explanation": "The second option is index 1.",
    },
    {
        "kind": "TRUE_FALSE",
        "question_text": "Completion is monotonic.",
        "correct_answer": True,
        "explanation": "Completed nodes never revert.",
    },
]


@pytest.fixture()
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


@pytest.fixture()
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, email, verified=True, role=UserRole.LEARNER.value):
    return user_crud.create_user(db, UserCreateInternal(
        firebase_uid=f"uid-{email}",
        email=email,
        display_name=email.split("@")[0],
        email_verified=verified,
        role=role,
    ))


@pytest.fixture()
def learner(db):
    return _make_user(db, "learner@learnhub.io")


@pytest.fixture()
def unverified_learner(db):
    return _make_user(db, "pending@learnhub.io", verified=False)


@pytest.fixture()
def admin(db):
    return _make_user(db, "admin@learnhub.io", role=UserRole.ADMIN.value)


class CourseBuilder:
    """Thin wrapper over the authoring CRUD helpers with test-friendly defaults."""

    def __init__(self, db):
        self.db = db

    def module(self, title="Module", **kwargs):
        return course_crud.create_module(self.db, ModuleCreate(title=title, **kwargs))

    def chapter(self, module, title="Chapter", **kwargs):
        return course_crud.create_chapter(self.db, ChapterCreate(title=title, **kwargs), module.id)

    def content(self, chapter, duration=120, title="Lesson", **kwargs):
        content_in = ContentCreate(
            title=title,
            content_type=kwargs.pop("content_type", ContentType.VIDEO),
            url=kwargs.pop("url", "https://cdn.learnhub.io/media/lesson.mp4"),
            duration_seconds=duration,
            **kwargs,
        )
        return course_crud.create_content(self.db, content_in, chapter.id)

    def quiz(self, chapter, passing_score=70, questions=None, **kwargs):
        quiz_in = QuizCreate(
            title=kwargs.pop("title", f"{chapter.title} quiz"),
            passing_score=passing_score,
            questions=questions if questions is not None else DEFAULT_QUESTIONS,
            **kwargs,
        )
        return course_crud.create_quiz(self.db, quiz_in, chapter.id)


@pytest.fixture()
def builder(db):
    return CourseBuilder(db)


@pytest.fixture()
def correct_answers():
    def _answers(quiz):
        return {question.id: question.correct_answer for question in quiz.questions}
    return _answers


class AuthState:
    """The identity the overridden dependencies resolve to; None means anonymous."""
    user = None


@pytest.fixture()
def auth():
    return AuthState()


@pytest.fixture()
def client(db, auth):
    def override_get_db():
        yield db

    def override_current_user():
        if auth.user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated. Bearer token required.")
        return auth.user

    def override_optional_current_user():
        return auth.user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_current_user] = override_current_user
    app.dependency_overrides[dependencies.get_optional_current_user] = override_optional_current_user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
