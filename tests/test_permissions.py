"""Role permissions, per-user overrides and the session user"""
from agenda.models import User


def _user_id(db, username):
    return db.query(User.id).filter(User.username == username).scalar()


def test_suporte_cannot_create_or_delete(client, suporte_headers, create_os):
    os_id = create_os()

    create = client.post(
        "/api/agendamentos",
        json={"cliente": "X", "cidade": "PATROCINIO", "assunto": "SEM CONEXÃO", "tipo_os": "FIBRA"},
        headers=suporte_headers,
    )
    delete = client.delete(f"/api/agendamentos/{os_id}", headers=suporte_headers)

    assert create.status_code == 403
    assert create.json() == {"error": "Acesso negado", "permission": "agenda.create"}
    assert delete.json() == {"error": "Acesso negado", "permission": "agenda.delete"}


def test_suporte_can_view_and_edit(client, suporte_headers, create_os):
    os_id = create_os()

    assert client.get("/api/agendamentos", headers=suporte_headers).status_code == 200
    response = client.put(
        f"/api/agendamentos/{os_id}", json={"tecnico": "Carlos Rocha"}, headers=suporte_headers
    )
    assert response.status_code == 200


def test_session_user_reports_role_permissions(client, agendamento_headers):
    response = client.get("/api/user", headers=agendamento_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "agendamento"
    assert body["role"] == "agendamento"
    assert set(body["permissions"]) == {
        "agenda.view",
        "agenda.create",
        "agenda.edit",
        "agenda.allocate",
        "vagas.view",
        "reports.view",
    }


def test_override_replaces_role_permissions(client, db, admin_headers, suporte_headers, create_os):
    suporte_id = _user_id(db, "suporte")

    response = client.put(
        f"/api/users/{suporte_id}/permissions",
        json={"permissions": ["agenda.view", "agenda.create", "agenda.create", " "]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == ["agenda.view", "agenda.create"]

    # Takes effect on the next request with the same token
    create = client.post(
        "/api/agendamentos",
        json={"cliente": "X", "cidade": "PATROCINIO", "assunto": "SEM CONEXÃO", "tipo_os": "FIBRA"},
        headers=suporte_headers,
    )
    assert create.status_code == 201

    os_id = create_os()
    edit = client.put(f"/api/agendamentos/{os_id}", json={"tecnico": "A"}, headers=suporte_headers)
    assert edit.status_code == 403

    effective = client.get(f"/api/users/{suporte_id}/permissions", headers=admin_headers).json()
    assert effective == ["agenda.view", "agenda.create"]


def test_empty_override_restores_role(client, db, admin_headers, suporte_headers):
    suporte_id = _user_id(db, "suporte")
    client.put(
        f"/api/users/{suporte_id}/permissions",
        json={"permissions": ["agenda.view"]},
        headers=admin_headers,
    )

    response = client.put(
        f"/api/users/{suporte_id}/permissions", json={"permissions": []}, headers=admin_headers
    )

    assert response.json() == {"message": "Permissões atualizadas (nenhuma override)", "permissions": []}
    perms = client.get("/api/user", headers=suporte_headers).json()["permissions"]
    assert "config.view" in perms


def test_non_list_permissions_clears_override(client, db, admin_headers):
    suporte_id = _user_id(db, "suporte")

    response = client.put(
        f"/api/users/{suporte_id}/permissions", json={"permissions": "agenda.view"}, headers=admin_headers
    )

    assert response.json()["permissions"] == []


def test_admin_has_no_bypass(client, db, admin_headers):
    admin_id = _user_id(db, "hiago")
    client.put(
        f"/api/users/{admin_id}/permissions", json={"permissions": ["agenda.view"]}, headers=admin_headers
    )

    response = client.get("/api/users", headers=admin_headers)

    assert response.status_code == 403
    assert response.json()["permission"] == "users.view"


def test_ensured_permissions_present_for_supervisor(client, make_user):
    headers = make_user("sup", "supervisor")

    perms = client.get("/api/user", headers=headers).json()["permissions"]

    assert "vagas.adjust" in perms
    assert "reports.view" in perms
    assert "users.manage" not in perms


def test_permissions_of_missing_user(client, admin_headers):
    response = client.get("/api/users/999/permissions", headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Usuário não encontrado"}
