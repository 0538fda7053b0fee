"""Login, logout and bearer token handling"""
import uvicorn

from agenda.main import run
from agenda.models import ActivityLog, User
from agenda.security_utils import create_jwt_token


def test_login_returns_token_and_permissions(client):
    response = client.post("/login", json={"username": "hiago", "password": "hiago123"})

    assert response.status_code == 200
    body = response.json()
    assert body["token"]
    assert body["user"]["username"] == "hiago"
    assert body["user"]["role"] == "admin"
    assert "agenda.delete" in body["user"]["permissions"]


def test_login_missing_fields(client):
    response = client.post("/login", json={"username": "hiago"})

    assert response.status_code == 400
    assert response.json() == {"error": "Usuário e senha são obrigatórios"}


def test_login_wrong_password(client):
    response = client.post("/login", json={"username": "hiago", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"error": "Usuário ou senha inválidos"}


def test_login_inactive_user_rejected(client, db):
    user = db.query(User).filter(User.username == "suporte").first()
    user.is_active = 0
    db.commit()

    response = client.post("/login", json={"username": "suporte", "password": "suporte123"})

    assert response.status_code == 401


def test_login_and_logout_are_logged(client, db, admin_headers):
    response = client.post("/logout", headers=admin_headers)
    assert response.status_code == 200

    actions = [row.action for row in db.query(ActivityLog).order_by(ActivityLog.id).all()]
    assert actions == ["LOGIN", "LOGOUT"]


def test_legacy_get_logout(client, admin_headers):
    response = client.get("/logout", headers=admin_headers)

    assert response.status_code == 200


def test_api_requires_token(client):
    response = client.get("/api/agendamentos")

    assert response.status_code == 401
    assert response.json() == {"error": "Não autenticado"}


def test_garbage_token_rejected(client):
    response = client.get("/api/user", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_token_of_deactivated_user_rejected(client, db, suporte_headers):
    user = db.query(User).filter(User.username == "suporte").first()
    user.is_active = 0
    db.commit()

    response = client.get("/api/user", headers=suporte_headers)

    assert response.status_code == 401


def test_token_for_unknown_user_rejected(client):
    token = create_jwt_token({"sub": "9999", "username": "ghost", "role": "admin"})

    response = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").status_code == 200


def test_security_headers_present(client, admin_headers):
    response = client.get("/api/user", headers=admin_headers)

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "no-store" in response.headers["Cache-Control"]


def test_console_entry_point_serves_app(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    monkeypatch.setenv("PORT", "8123")

    run()

    assert calls == [(("agenda.main:app",), {"host": "0.0.0.0", "port": 8123, "reload": False})]
