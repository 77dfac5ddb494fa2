import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="prompthive-tests-")

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "disabled"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["EMAIL_LOG_FILE"] = os.path.join(_TMP, "email.log")
os.environ["ADMIN_PROPERTIES_FILE"] = os.path.join(_TMP, "admin.properties")

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from prompthive.core.database import get_db
from prompthive.core.permissions import ROLE_ADMIN, ROLE_GUEST, ROLE_USER
from prompthive.core.security import create_access_token
from prompthive.models.base import Base
from prompthive.schemas.prompt import PromptCreate
from prompthive.services import collection_service, prompt_service, user_service

fake = Faker()

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

PASSWORD = "correct-horse"


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, role=ROLE_USER, password=PASSWORD):
    return user_service.create_user(
        db,
        fake.unique.user_name(),
        fake.unique.email(),
        password,
        role,
    )


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


def make_prompt(db, user, title=None, content="Write about {{topic}}", collection=None, **fields):
    data = PromptCreate(
        title=title or fake.unique.sentence(nb_words=4),
        content=content,
        collection_id=collection.id if collection is not None else None,
        **fields,
    )
    return prompt_service.create_prompt(db, user, data)


def make_collection(db, user, title=None, parent=None):
    return collection_service.create_collection(
        db, user, title or fake.unique.word().title(), parent_id=parent.id if parent is not None else None
    )


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def other_user(db):
    return make_user(db)


@pytest.fixture
def admin(db):
    return make_user(db, role=ROLE_ADMIN)


@pytest.fixture
def guest(db):
    return make_user(db, role=ROLE_GUEST)


@pytest.fixture
def upload_dir():
    return os.environ["UPLOAD_DIR"]


@pytest.fixture
def admin_properties():
    return os.environ["ADMIN_PROPERTIES_FILE"]
