import pytest
from fastapi.testclient import TestClient

from inscribo.app.db.base import Base
from inscribo.app.db.session import engine
from inscribo.app.main import app


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_lead(client: TestClient, token: str, payload: dict):
    return client.post("/leads/", json=payload, headers=auth(token))


def stage_ids(client: TestClient, token: str) -> dict:
    return {s["name"]: s["id"] for s in client.get("/stages/", headers=auth(token)).json()}


def test_create_lead_success():
    client = TestClient(app)
    token = register_and_login(client, "lead@example.com", "secret")
    payload = {
        "student_name": "Ana",
        "parent_name": "Carla",
        "phone": "+55 11 99999-0000",
        "grade_level": "5º ano",
        "source": "instagram",
    }
    response = create_lead(client, token, payload)
    assert response.status_code == 201
    data = response.json()
    for key, value in payload.items():
        assert data[key] == value
    assert data["current_stage_id"] is None
    assert data["version"] == 1
    assert data["visit"] is None


def test_create_lead_requires_auth():
    client = TestClient(app)
    response = client.post("/leads/", json={"student_name": "Ana"})
    assert response.status_code == 401


def test_blank_student_name_rejected():
    client = TestClient(app)
    token = register_and_login(client, "blank@example.com", "secret")
    response = create_lead(client, token, {"student_name": "   "})
    assert response.status_code == 400


def test_intake_with_visit():
    client = TestClient(app)
    token = register_and_login(client, "intake@example.com", "secret")
    payload = {"student_name": "Ana", "visit": {"scheduled_at": "2025-03-01T14:00:00", "duration_minutes": 60}}
    response = create_lead(client, token, payload)
    assert response.status_code == 201
    visit = response.json()["visit"]
    assert visit["status"] == "scheduled"
    assert visit["title"] == "Visit - Ana"

    lead_id = response.json()["id"]
    timeline = client.get(f"/leads/{lead_id}/interactions", headers=auth(token)).json()
    assert [i["type"] for i in timeline] == ["visit"]


def test_list_search_and_sort():
    client = TestClient(app)
    token = register_and_login(client, "list@example.com", "secret")
    create_lead(client, token, {"student_name": "Bruno", "parent_name": "Paula"})
    create_lead(client, token, {"student_name": "Ana", "parent_name": "Marcos"})

    response = client.get("/leads/", params={"sort_by": "student_name", "sort_order": "asc"}, headers=auth(token))
    assert [lead["student_name"] for lead in response.json()] == ["Ana", "Bruno"]

    response = client.get("/leads/", params={"search": "paula"}, headers=auth(token))
    assert [lead["student_name"] for lead in response.json()] == ["Bruno"]

    bad = client.get("/leads/", params={"sort_by": "phone"}, headers=auth(token))
    assert bad.status_code == 400


def test_leads_are_scoped_to_institution():
    client = TestClient(app)
    token_a = register_and_login(client, "a@example.com", "secret")
    token_b = register_and_login(client, "b@example.com", "secret")
    lead_id = create_lead(client, token_a, {"student_name": "Ana"}).json()["id"]

    assert client.get(f"/leads/{lead_id}", headers=auth(token_b)).status_code == 404
    assert client.get("/leads/", headers=auth(token_b)).json() == []


def test_update_lead_bumps_version_and_detects_stale_write():
    client = TestClient(app)
    token = register_and_login(client, "update@example.com", "secret")
    lead_id = create_lead(client, token, {"student_name": "Ana"}).json()["id"]

    first = client.put(f"/leads/{lead_id}", json={"phone": "123", "expected_version": 1}, headers=auth(token))
    assert first.status_code == 200
    assert first.json()["version"] == 2

    stale = client.put(f"/leads/{lead_id}", json={"phone": "456", "expected_version": 1}, headers=auth(token))
    assert stale.status_code == 409
    assert client.get(f"/leads/{lead_id}", headers=auth(token)).json()["phone"] == "123"


def test_update_cannot_change_stage():
    client = TestClient(app)
    token = register_and_login(client, "nostage@example.com", "secret")
    stages = stage_ids(client, token)
    lead_id = create_lead(client, token, {"student_name": "Ana"}).json()["id"]
    response = client.put(f"/leads/{lead_id}", json={"current_stage_id": stages["Novo"]}, headers=auth(token))
    assert response.status_code == 422


def test_move_stage_records_history_and_timeline():
    client = TestClient(app)
    token = register_and_login(client, "move@example.com", "secret")
    stages = stage_ids(client, token)
    lead_id = create_lead(client, token, {"student_name": "Ana", "current_stage_id": stages["Novo"]}).json()["id"]

    moved = client.post(f"/leads/{lead_id}/stage", json={"stage_id": stages["Contato"]}, headers=auth(token))
    assert moved.status_code == 200
    body = moved.json()
    assert body["lead"]["current_stage_id"] == stages["Contato"]
    assert body["stage_change"]["from_stage_name"] == "Novo"
    assert body["stage_change"]["to_stage_name"] == "Contato"

    again = client.post(f"/leads/{lead_id}/stage", json={"stage_id": stages["Contato"]}, headers=auth(token))
    assert again.status_code == 200
    assert again.json()["stage_change"] is None

    history = client.get(f"/leads/{lead_id}/history", headers=auth(token)).json()
    assert len(history) == 1
    timeline = client.get(f"/leads/{lead_id}/interactions", headers=auth(token)).json()
    assert [i["content"] for i in timeline] == ["Stage changed from Novo to Contato"]


def test_move_to_unknown_stage_is_not_found():
    client = TestClient(app)
    token = register_and_login(client, "unknown@example.com", "secret")
    lead_id = create_lead(client, token, {"student_name": "Ana"}).json()["id"]
    response = client.post(f"/leads/{lead_id}/stage", json={"stage_id": 9999}, headers=auth(token))
    assert response.status_code == 404


def test_board_groups_leads_by_stage():
    client = TestClient(app)
    token = register_and_login(client, "board@example.com", "secret")
    stages = stage_ids(client, token)
    create_lead(client, token, {"student_name": "Ana", "current_stage_id": stages["Novo"]})
    create_lead(client, token, {"student_name": "Beto"})

    board = client.get("/leads/board", headers=auth(token)).json()
    assert [column["stage"]["name"] for column in board["columns"]][0] == "Novo"
    assert [lead["student_name"] for lead in board["columns"][0]["leads"]] == ["Ana"]
    assert [lead["student_name"] for lead in board["unclassified"]] == ["Beto"]


def test_add_interaction():
    client = TestClient(app)
    token = register_and_login(client, "notes@example.com", "secret")
    lead_id = create_lead(client, token, {"student_name": "Ana"}).json()["id"]

    created = client.post(
        f"/leads/{lead_id}/interactions", json={"type": "call", "content": "Left a message"}, headers=auth(token)
    )
    assert created.status_code == 201
    assert created.json()["type"] == "call"

    invalid = client.post(f"/leads/{lead_id}/interactions", json={"type": "fax", "content": "x"}, headers=auth(token))
    assert invalid.status_code == 422


def test_lead_visit_can_advance_stage():
    client = TestClient(app)
    token = register_and_login(client, "leadvisit@example.com", "secret")
    stages = stage_ids(client, token)
    lead_id = create_lead(client, token, {"student_name": "Ana", "current_stage_id": stages["Contato"]}).json()["id"]

    response = client.post(
        f"/leads/{lead_id}/visits",
        json={"scheduled_at": "2025-03-01T14:00:00", "advance_to_stage_id": stages["Agendado"]},
        headers=auth(token),
    )
    assert response.status_code == 201
    assert response.json()["lead_id"] == lead_id
    lead = client.get(f"/leads/{lead_id}", headers=auth(token)).json()
    assert lead["current_stage_id"] == stages["Agendado"]
