"""Vacancy grid, closed slots, capacity templates and allocation"""
from datetime import datetime

from agenda.models import Agendamento, AuditLog, City, Subject, VacancyClosedSlot

DAY = "2026-03-02"


def allocate(client, headers, os_id, periodo="MANHÃ", assunto="CONEXÃO LENTA", **extra):
    body = {"data_hora": DAY, "periodo": periodo, "vaga_assunto": assunto, **extra}
    return client.put(f"/api/agendamentos/{os_id}/alocar", json=body, headers=headers)


def close_slot(client, headers, index, closed=True, cidade="PATOS DE MINAS", assunto="CONEXÃO LENTA"):
    return client.put(
        "/api/vagas-fechadas",
        json={
            "cidade": cidade,
            "data": DAY,
            "tipo": "FIBRA",
            "periodo": "MANHÃ",
            "assunto": assunto,
            "index": index,
            "closed": closed,
        },
        headers=headers,
    )


# ============================================================================
# ALLOCATION
# ============================================================================


def test_allocate_date_only_uses_period_default_hour(client, admin_headers, create_os, db):
    os_id = create_os()

    response = allocate(client, admin_headers, os_id)

    assert response.status_code == 200, response.text
    row = db.get(Agendamento, os_id)
    assert row.status == "Agendada"
    assert row.periodo == "MANHÃ"
    assert row.data_hora == datetime(2026, 3, 2, 8, 0)
    assert db.query(AuditLog).filter(AuditLog.action == "ALLOCATE_AGENDAMENTO").count() == 1


def test_allocate_afternoon_default_hour(client, admin_headers, create_os, db):
    os_id = create_os()

    allocate(client, admin_headers, os_id, periodo="TARDE")

    assert db.get(Agendamento, os_id).data_hora == datetime(2026, 3, 2, 14, 0)


def test_allocate_full_cell_rejected(client, admin_headers, create_os):
    # PATROCINIO / FIBRA / MANHÃ / CONEXÃO LENTA holds one OS
    first, second = create_os(), create_os(cliente="Outro")
    assert allocate(client, admin_headers, first).status_code == 200

    response = allocate(client, admin_headers, second)

    assert response.status_code == 400
    assert response.json() == {
        "error": "Vaga indisponível. Limite de 1 para CONEXÃO LENTA (MANHÃ)."
    }


def test_other_period_is_a_separate_cell(client, admin_headers, create_os):
    first, second = create_os(), create_os(cliente="Outro")
    allocate(client, admin_headers, first)

    response = allocate(client, admin_headers, second, periodo="TARDE")

    assert response.status_code == 200


def test_cancelled_order_frees_the_slot(client, admin_headers, create_os):
    first, second = create_os(), create_os(cliente="Outro")
    allocate(client, admin_headers, first)
    client.put(f"/api/agendamentos/{first}", json={"status": "Cancelada"}, headers=admin_headers)

    response = allocate(client, admin_headers, second)

    assert response.status_code == 200


def test_reallocating_same_order_does_not_count_itself(client, admin_headers, create_os):
    os_id = create_os()
    allocate(client, admin_headers, os_id)

    response = allocate(client, admin_headers, os_id)

    assert response.status_code == 200


def test_legacy_rows_without_periodo_count_by_hour(client, admin_headers, create_os, db):
    db.add(
        Agendamento(cliente="Legado", cidade="PATROCINIO", assunto="CONEXÃO LENTA",
                    tipo_os="FIBRA", status="Em andamento", data_hora=datetime(2026, 3, 2, 10, 30))
    )
    db.commit()
    os_id = create_os()

    assert allocate(client, admin_headers, os_id).status_code == 400
    assert allocate(client, admin_headers, os_id, periodo="TARDE").status_code == 200


def test_allocate_subject_mismatch(client, admin_headers, create_os):
    os_id = create_os(assunto="CONEXÃO LENTA")

    response = allocate(client, admin_headers, os_id, assunto="SEM CONEXÃO")

    assert response.status_code == 400
    assert "Assunto da vaga" in response.json()["error"]


def test_allocate_city_and_type_mismatch(client, admin_headers, create_os):
    os_id = create_os()

    city = allocate(client, admin_headers, os_id, cidade="PARACATU")
    tipo = allocate(client, admin_headers, os_id, tipo_os="RADIO")

    assert city.status_code == 400
    assert tipo.status_code == 400


def test_allocate_requires_fields(client, admin_headers, create_os):
    os_id = create_os()

    response = client.put(
        f"/api/agendamentos/{os_id}/alocar", json={"data_hora": DAY}, headers=admin_headers
    )

    assert response.status_code == 400
    assert "Campo 'vaga_assunto' é obrigatório" in response.json()["details"]


def test_allocate_unknown_period(client, admin_headers, create_os):
    os_id = create_os()

    response = allocate(client, admin_headers, os_id, periodo="NOITE")

    assert response.status_code == 400


def test_allocate_missing_order(client, admin_headers):
    response = allocate(client, admin_headers, 4242)

    assert response.status_code == 404


def test_allocate_without_template_has_no_capacity(client, admin_headers, create_os):
    os_id = create_os(assunto="INSTALAÇÃO")

    response = allocate(client, admin_headers, os_id, assunto="INSTALAÇÃO")

    assert response.status_code == 400
    assert "Limite de 0" in response.json()["error"]


def test_closed_slot_reduces_capacity(client, admin_headers, create_os):
    # PATOS DE MINAS / FIBRA / MANHÃ / CONEXÃO LENTA holds two
    assert close_slot(client, admin_headers, 0).status_code == 200
    first = create_os(cidade="PATOS DE MINAS")
    second = create_os(cidade="PATOS DE MINAS", cliente="Outro")

    assert allocate(client, admin_headers, first).status_code == 200
    response = allocate(client, admin_headers, second)

    assert response.status_code == 400
    assert "Limite de 1" in response.json()["error"]


def test_closed_index_beyond_capacity_is_ignored(client, admin_headers, create_os):
    close_slot(client, admin_headers, 7)
    first = create_os(cidade="PATOS DE MINAS")
    second = create_os(cidade="PATOS DE MINAS", cliente="Outro")

    assert allocate(client, admin_headers, first).status_code == 200
    assert allocate(client, admin_headers, second).status_code == 200


# ============================================================================
# GRID VIEWS
# ============================================================================


def test_vagas_view(client, admin_headers, create_os):
    os_id = create_os()
    allocate(client, admin_headers, os_id)

    response = client.get(f"/api/vagas/PATROCINIO/{DAY}", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["template"]["FIBRA"]["MANHÃ"]["CONEXÃO LENTA"] == 1
    assert body["template"]["RADIO"]["TARDE"]["SEM CONEXÃO"] == 1
    assert [r["id"] for r in body["ocupadas"]] == [os_id]
    assert body["ocupadas"][0]["data_hora"] == "2026-03-02 08:00:00"


def test_vagas_view_hides_inactive_subjects(client, admin_headers, db):
    subject_id = db.query(Subject.id).filter(Subject.name == "AGENDAMENTO").scalar()
    client.post(f"/api/subjects/{subject_id}/toggle", json={"is_active": 0}, headers=admin_headers)

    body = client.get(f"/api/vagas/PATROCINIO/{DAY}", headers=admin_headers).json()

    assert "AGENDAMENTO" not in body["template"]["FIBRA"]["MANHÃ"]


def test_vagas_detalhadas(client, admin_headers, create_os):
    os_id = create_os()
    allocate(client, admin_headers, os_id)
    close_slot(client, admin_headers, 0, cidade="PATROCINIO", assunto="SEM CONEXÃO")

    response = client.get(f"/api/vagas-detalhadas/PATROCINIO/FIBRA/{DAY}", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    empty_cells = {"SEM CONEXÃO": [], "CONEXÃO LENTA": [], "AGENDAMENTO": []}
    assert body["template"]["MANHÃ"]["SEM CONEXÃO"] == 3
    assert [r["id"] for r in body["agendamentos"]["MANHÃ"]["CONEXÃO LENTA"]] == [os_id]
    assert body["agendamentos"]["TARDE"] == empty_cells
    assert body["vagasFechadas"] == {
        "MANHÃ": {**empty_cells, "SEM CONEXÃO": [0]},
        "TARDE": empty_cells,
    }
    assert (body["cidade"], body["tipo"], body["data"]) == ("PATROCINIO", "FIBRA", DAY)


def test_vagas_detalhadas_leaves_out_cells_without_template(client, admin_headers, db):
    # INSTALAÇÃO has no template cell in PATROCINIO
    db.add(
        Agendamento(cliente="Fora", cidade="PATROCINIO", assunto="INSTALAÇÃO", tipo_os="FIBRA",
                    status="Agendada", periodo="MANHÃ", data_hora=datetime(2026, 3, 2, 9, 0))
    )
    db.commit()
    close_slot(client, admin_headers, 0, cidade="PATROCINIO", assunto="INSTALAÇÃO")

    body = client.get(
        f"/api/vagas-detalhadas/PATROCINIO/FIBRA/{DAY}", headers=admin_headers
    ).json()

    assert "INSTALAÇÃO" not in body["agendamentos"]["MANHÃ"]
    assert "INSTALAÇÃO" not in body["vagasFechadas"]["MANHÃ"]


def test_vagas_detalhadas_unknown_city(client, admin_headers):
    response = client.get(f"/api/vagas-detalhadas/ATLANTIDA/FIBRA/{DAY}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Cidade ou tipo de OS não encontrado"}


# ============================================================================
# CLOSED SLOTS
# ============================================================================


def test_vagas_fechadas_requires_params(client, admin_headers):
    response = client.get("/api/vagas-fechadas", params={"cidade": "PARACATU"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Informe cidade, data e tipo"}


def test_close_and_reopen_slot(client, admin_headers, db):
    closed = close_slot(client, admin_headers, 1)
    assert closed.json() == {"ok": True, "action": "close"}

    # Closing twice is a no-op
    close_slot(client, admin_headers, 1)
    assert db.query(VacancyClosedSlot).count() == 1

    listed = client.get(
        "/api/vagas-fechadas",
        params={"cidade": "PATOS DE MINAS", "data": DAY, "tipo": "FIBRA"},
        headers=admin_headers,
    ).json()
    assert listed == {"MANHÃ": {"CONEXÃO LENTA": [1]}, "TARDE": {}}

    reopened = close_slot(client, admin_headers, 1, closed="false")
    assert reopened.json() == {"ok": True, "action": "open", "changes": 1}
    assert db.query(VacancyClosedSlot).count() == 0

    actions = [a for (a,) in db.query(AuditLog.action).order_by(AuditLog.id).all()]
    assert actions.count("CLOSE_SLOT") == 2
    assert actions[-1] == "OPEN_SLOT"
    entity = db.query(AuditLog).filter(AuditLog.action == "OPEN_SLOT").one().entity_id
    assert entity == f"PATOS DE MINAS|FIBRA|MANHÃ|CONEXÃO LENTA|{DAY}|1"
    assert db.query(AuditLog.entity_type).filter(AuditLog.action == "OPEN_SLOT").scalar() == (
        "vacancy_closed_slot"
    )


def test_slot_index_zero_is_valid(client, admin_headers):
    assert close_slot(client, admin_headers, 0).status_code == 200


def test_slot_index_validation(client, admin_headers):
    for bad in (-1, 1.5, "abc", 1e20, 10**30, "1e400"):
        response = close_slot(client, admin_headers, bad)
        assert response.status_code == 400
        assert response.json() == {"error": "index inválido"}


def test_slot_unknown_names(client, admin_headers):
    response = close_slot(client, admin_headers, 0, cidade="ATLANTIDA")

    assert response.status_code == 400
    assert response.json() == {"error": "Cidade/tipo/período/assunto inválidos"}


def test_suporte_cannot_close_slots(client, suporte_headers):
    response = close_slot(client, suporte_headers, 0)

    assert response.status_code == 403
    assert response.json() == {"error": "Acesso negado", "permission": "vagas.manage"}


# ============================================================================
# CAPACITY TEMPLATES
# ============================================================================


def test_get_vacancy_templates(client, admin_headers):
    response = client.get(
        "/api/vacancy-templates",
        params={"city": "PATOS DE MINAS", "tipo_os": "FIBRA", "periodo": "MANHÃ"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == [
        {"assunto": "AGENDAMENTO", "capacity": 3},
        {"assunto": "CONEXÃO LENTA", "capacity": 2},
        {"assunto": "SEM CONEXÃO", "capacity": 5},
    ]


def test_save_vacancy_templates(client, admin_headers):
    response = client.put(
        "/api/vacancy-templates",
        json={
            "city": "PARACATU",
            "tipo_os": "RADIO",
            "periodo": "TARDE",
            "capacities": {"SEM CONEXÃO": 4, "INSTALAÇÃO": "2", "CONEXÃO LENTA": -3,
                           "AGENDAMENTO": "muitos", "MANUTENÇÃO": "1e400", "INEXISTENTE": 9},
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "changes": 5}

    rows = client.get(
        "/api/vacancy-templates",
        params={"city": "PARACATU", "tipo_os": "RADIO", "periodo": "TARDE"},
        headers=admin_headers,
    ).json()
    assert {r["assunto"]: r["capacity"] for r in rows} == {
        "AGENDAMENTO": 0,
        "CONEXÃO LENTA": 0,
        "INSTALAÇÃO": 2,
        "MANUTENÇÃO": 0,
        "SEM CONEXÃO": 4,
    }


def test_save_vacancy_templates_clamps_huge_capacity(client, admin_headers, db):
    response = client.put(
        "/api/vacancy-templates",
        json={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ",
              "capacities": {"SEM CONEXÃO": 1e20}},
        headers=admin_headers,
    )

    assert response.status_code == 200
    rows = client.get(
        "/api/vacancy-templates",
        params={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ"},
        headers=admin_headers,
    ).json()
    assert {r["assunto"]: r["capacity"] for r in rows}["SEM CONEXÃO"] == 2**31 - 1
    entity_type = (
        db.query(AuditLog.entity_type)
        .filter(AuditLog.action == "UPDATE_VACANCY_TEMPLATES")
        .scalar()
    )
    assert entity_type == "vacancy_templates"


def test_save_vacancy_templates_unknown_city(client, admin_headers):
    response = client.put(
        "/api/vacancy-templates",
        json={"city": "ATLANTIDA", "tipo_os": "FIBRA", "periodo": "MANHÃ", "capacities": {}},
        headers=admin_headers,
    )

    assert response.status_code == 404


def test_save_vacancy_templates_requires_object(client, admin_headers):
    response = client.put(
        "/api/vacancy-templates",
        json={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ", "capacities": [1, 2]},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_adjust_capacity(client, admin_headers):
    body = {"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ", "assunto": "CONEXÃO LENTA"}

    up = client.post("/api/vacancy-templates/adjust", json={**body, "delta": 1}, headers=admin_headers)
    assert up.json() == {"ok": True, "capacity": 2}

    client.post("/api/vacancy-templates/adjust", json={**body, "delta": -1}, headers=admin_headers)
    client.post("/api/vacancy-templates/adjust", json={**body, "delta": -1}, headers=admin_headers)
    floor = client.post(
        "/api/vacancy-templates/adjust", json={**body, "delta": -1}, headers=admin_headers
    )
    assert floor.json() == {"ok": True, "capacity": 0}


def test_adjust_creates_missing_cell(client, admin_headers):
    response = client.post(
        "/api/vacancy-templates/adjust",
        json={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ",
              "assunto": "MANUTENÇÃO", "delta": 1},
        headers=admin_headers,
    )

    assert response.json() == {"ok": True, "capacity": 1}


def test_adjust_rejects_other_deltas(client, admin_headers):
    response = client.post(
        "/api/vacancy-templates/adjust",
        json={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ",
              "assunto": "CONEXÃO LENTA", "delta": 2},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "delta deve ser 1 ou -1"}


def test_adjust_needs_adjust_permission(client, agendamento_headers):
    response = client.post(
        "/api/vacancy-templates/adjust",
        json={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ",
              "assunto": "CONEXÃO LENTA", "delta": 1},
        headers=agendamento_headers,
    )

    assert response.status_code == 403


def test_raised_capacity_allows_allocation(client, admin_headers, create_os):
    first, second = create_os(), create_os(cliente="Outro")
    allocate(client, admin_headers, first)
    client.post(
        "/api/vacancy-templates/adjust",
        json={"city": "PATROCINIO", "tipo_os": "FIBRA", "periodo": "MANHÃ",
              "assunto": "CONEXÃO LENTA", "delta": 1},
        headers=admin_headers,
    )

    assert allocate(client, admin_headers, second).status_code == 200


def test_adjust_resolves_inactive_city_and_subject(client, admin_headers, db):
    city_id = db.query(City.id).filter(City.name == "PARACATU").scalar()
    subject_id = db.query(Subject.id).filter(Subject.name == "CONEXÃO LENTA").scalar()
    client.post(f"/api/cities/{city_id}/toggle", headers=admin_headers)
    client.post(f"/api/subjects/{subject_id}/toggle", json={"is_active": 0}, headers=admin_headers)

    response = client.post(
        "/api/vacancy-templates/adjust",
        json={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ",
              "assunto": "CONEXÃO LENTA", "delta": 1},
        headers=admin_headers,
    )

    assert response.json() == {"ok": True, "capacity": 2}
    entity_type = (
        db.query(AuditLog.entity_type)
        .filter(AuditLog.action == "VACANCY_TEMPLATE_ADJUST")
        .scalar()
    )
    assert entity_type == "vacancy_template"


def test_adjust_unknown_subject(client, admin_headers):
    response = client.post(
        "/api/vacancy-templates/adjust",
        json={"city": "PARACATU", "tipo_os": "FIBRA", "periodo": "MANHÃ",
              "assunto": "NÃO EXISTE", "delta": 1},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Assunto não encontrado"}
