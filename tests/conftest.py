import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

import app.models  # noqa: F401
from app import auth
from app.auth import AuthProvider
from app.database import get_session
from app.main import app
from app.models import User

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(auth, "PBKDF2_ITERATIONS", 1000)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def rows(engine):
    """Read rows in a fresh session, after the app has committed."""

    def fetch(model, *where):
        query = select(model)
        if where:
            query = query.where(*where)
        with Session(engine) as session:
            return list(session.exec(query).all())

    return fetch


@pytest.fixture
def make_admin(engine):
    def create(email=ADMIN_EMAIL, password=ADMIN_PASSWORD, full_name="Ada Admin"):
        with Session(engine) as session:
            identity = AuthProvider(session).admin_create_user(email, password, email_confirm=True)
            identity_id = identity.id
            session.add(User(
                id=identity_id,
                email=identity.email,
                full_name=full_name,
                name=full_name,
                token_identifier=identity_id,
                user_id=identity_id,
            ))
            session.commit()
        return identity_id

    return create


@pytest.fixture
def admin_id(make_admin):
    return make_admin()


@pytest.fixture
def admin_client(client, admin_id):
    response = client.post(
        "/sign-in",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert response.headers["location"].startswith("/dashboard")
    return client
