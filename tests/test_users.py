"""User accounts and preferences"""
from agenda.models import AuditLog, User


def test_list_users(client, admin_headers):
    response = client.get("/api/users", headers=admin_headers)

    assert response.status_code == 200
    users = {u["username"]: u for u in response.json()}
    assert set(users) >= {"hiago", "suporte", "agendamento"}
    assert users["hiago"]["role"] == "admin"
    assert users["hiago"]["permissions"] == []
    assert "password" not in users["hiago"]


def test_list_users_requires_permission(client, suporte_headers):
    response = client.get("/api/users", headers=suporte_headers)

    assert response.status_code == 403


def test_create_user_and_login(client, admin_headers, db):
    response = client.post(
        "/api/users",
        json={"username": "novo", "password": "novo123", "role": "agendamento"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "novo"
    stored = db.query(User).filter(User.username == "novo").one()
    assert stored.password != "novo123"
    assert db.query(AuditLog).filter(AuditLog.action == "CREATE_USER").count() == 1

    login = client.post("/login", json={"username": "novo", "password": "novo123"})
    assert login.status_code == 200


def test_create_user_validation(client, admin_headers):
    missing = client.post("/api/users", json={"username": "x"}, headers=admin_headers)
    bad_role = client.post(
        "/api/users", json={"username": "x", "password": "y", "role": "root"}, headers=admin_headers
    )
    duplicate = client.post(
        "/api/users",
        json={"username": "suporte", "password": "y", "role": "suporte"},
        headers=admin_headers,
    )

    assert missing.status_code == 400
    assert "Campo 'password' é obrigatório" in missing.json()["details"]
    assert bad_role.json() == {"error": "Função inválida"}
    assert duplicate.json() == {"error": "Nome de usuário já existe"}


def test_update_user_keeps_password_when_blank(client, admin_headers, db):
    suporte_id = db.query(User.id).filter(User.username == "suporte").scalar()

    response = client.put(
        f"/api/users/{suporte_id}",
        json={"username": "suporte2", "password": "", "role": "supervisor"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    login = client.post("/login", json={"username": "suporte2", "password": "suporte123"})
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "supervisor"


def test_update_user_deactivates(client, admin_headers, db):
    suporte_id = db.query(User.id).filter(User.username == "suporte").scalar()

    client.put(
        f"/api/users/{suporte_id}",
        json={"username": "suporte", "role": "suporte", "is_active": 0},
        headers=admin_headers,
    )

    login = client.post("/login", json={"username": "suporte", "password": "suporte123"})
    assert login.status_code == 401


def test_update_user_duplicate_and_missing(client, admin_headers, db):
    suporte_id = db.query(User.id).filter(User.username == "suporte").scalar()

    duplicate = client.put(
        f"/api/users/{suporte_id}",
        json={"username": "hiago", "role": "suporte"},
        headers=admin_headers,
    )
    missing = client.put(
        "/api/users/999", json={"username": "z", "role": "suporte"}, headers=admin_headers
    )

    assert duplicate.status_code == 400
    assert missing.status_code == 404


def test_cannot_delete_self(client, admin_headers, db):
    admin_id = db.query(User.id).filter(User.username == "hiago").scalar()

    response = client.delete(f"/api/users/{admin_id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Você não pode excluir sua própria conta"}


def test_delete_user_keeps_audit_history(client, admin_headers, make_user, db):
    headers = make_user("temp", "agendamento")
    client.post(
        "/api/agendamentos",
        json={"cliente": "X", "cidade": "PATROCINIO", "assunto": "SEM CONEXÃO", "tipo_os": "FIBRA"},
        headers=headers,
    )
    temp_id = db.query(User.id).filter(User.username == "temp").scalar()

    response = client.delete(f"/api/users/{temp_id}", headers=admin_headers)

    assert response.status_code == 200
    db.expire_all()
    row = db.query(AuditLog).filter(AuditLog.action == "CREATE_AGENDAMENTO").one()
    assert row.user_id is None
    assert row.username == "temp"


def test_preferences_key_value(client, suporte_headers):
    saved = client.put(
        "/api/me/preferences", json={"key": "theme", "value": "dark"}, headers=suporte_headers
    )

    assert saved.json() == {"ok": True}
    assert client.get("/api/me/preferences", headers=suporte_headers).json() == {"theme": "dark"}


def test_preferences_plain_object_overwrites(client, suporte_headers, admin_headers):
    client.put("/api/me/preferences", json={"theme": "dark"}, headers=suporte_headers)
    client.put(
        "/api/me/preferences", json={"theme": "light", "density": 2}, headers=suporte_headers
    )

    prefs = client.get("/api/me/preferences", headers=suporte_headers).json()
    assert prefs == {"theme": "light", "density": "2"}
    assert client.get("/api/me/preferences", headers=admin_headers).json() == {}


def test_preferences_empty_body(client, suporte_headers):
    response = client.put("/api/me/preferences", json={}, headers=suporte_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Nada para salvar"}
