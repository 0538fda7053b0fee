"""Pytest configuration and fixtures"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# The engine is created at import time, so the test database must be set first
_db_dir = tempfile.mkdtemp(prefix="agenda-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_db_dir) / 'agenda-test.db'}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SEED_DEFAULT_DATA"] = "true"

from fastapi.testclient import TestClient  # noqa: E402

from agenda.database import Base, SessionLocal, engine  # noqa: E402
from agenda.db_init import initialize_database  # noqa: E402
from agenda.main import app  # noqa: E402
from agenda.models import User  # noqa: E402
from agenda.security_utils import hash_password_bcrypt  # noqa: E402

ADMIN = ("hiago", "hiago123")
SUPORTE = ("suporte", "suporte123")
AGENDAMENTO = ("agendamento", "agenda123")


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from the seeded defaults"""
    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def login(client: TestClient, username: str, password: str) -> dict:
    response = client.post("/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, *ADMIN)


@pytest.fixture
def suporte_headers(client):
    return login(client, *SUPORTE)


@pytest.fixture
def agendamento_headers(client):
    return login(client, *AGENDAMENTO)


@pytest.fixture
def make_user(db, client):
    """Create a user with a role and return its auth headers"""

    def _make(username: str, role: str, password: str = "secret123") -> dict:
        db.add(User(username=username, password=hash_password_bcrypt(password), role=role))
        db.commit()
        return login(client, username, password)

    return _make


@pytest.fixture
def create_os(client, admin_headers):
    """Open an OS through the API and return its id"""

    def _create(
        cliente: str = "Cliente Teste",
        cidade: str = "PATROCINIO",
        assunto: str = "CONEXÃO LENTA",
        tipo_os: str = "FIBRA",
    ) -> int:
        response = client.post(
            "/api/agendamentos",
            json={"cliente": cliente, "cidade": cidade, "assunto": assunto, "tipo_os": tipo_os},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _create
