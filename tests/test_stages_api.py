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
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def add_member(client: TestClient, admin_token: str, email: str) -> str:
    resp = client.post(
        "/users/",
        json={"email": email, "password": "secret", "full_name": "Member"},
        headers=auth(admin_token),
    )
    assert resp.status_code == 201
    login = client.post("/auth/login", json={"email": email, "password": "secret"})
    return login.json()["access_token"]


def test_list_default_stages():
    client = TestClient(app)
    token = register_and_login(client, "stages@example.com", "secret")
    resp = client.get("/stages/", headers=auth(token))
    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()][0] == "Novo"
    assert len(resp.json()) == 6


def test_admin_adds_and_updates_stage():
    client = TestClient(app)
    token = register_and_login(client, "stages2@example.com", "secret")
    created = client.post("/stages/", json={"name": "Rematrícula", "color": "#112233"}, headers=auth(token))
    assert created.status_code == 201
    assert created.json()["order_index"] == 7

    stage_id = created.json()["id"]
    patched = client.patch(f"/stages/{stage_id}", json={"name": "Retorno", "order_index": 0}, headers=auth(token))
    assert patched.status_code == 200
    assert patched.json()["name"] == "Retorno"
    assert client.get("/stages/", headers=auth(token)).json()[0]["id"] == stage_id


def test_invalid_stage_update_changes_nothing():
    client = TestClient(app)
    token = register_and_login(client, "stages3@example.com", "secret")
    stage = client.get("/stages/", headers=auth(token)).json()[0]
    resp = client.patch(f"/stages/{stage['id']}", json={"name": "Outro", "color": "blue"}, headers=auth(token))
    assert resp.status_code == 400
    assert client.get("/stages/", headers=auth(token)).json()[0]["name"] == stage["name"]


def test_member_cannot_manage_stages():
    client = TestClient(app)
    admin = register_and_login(client, "stages4@example.com", "secret")
    member = add_member(client, admin, "member4@example.com")
    assert client.get("/stages/", headers=auth(member)).status_code == 200
    resp = client.post("/stages/", json={"name": "X", "color": "#112233"}, headers=auth(member))
    assert resp.status_code == 403


def test_delete_stage_rules():
    client = TestClient(app)
    token = register_and_login(client, "stages5@example.com", "secret")
    stages = client.get("/stages/", headers=auth(token)).json()

    lead = client.post(
        "/leads/", json={"student_name": "Ana", "current_stage_id": stages[0]["id"]}, headers=auth(token)
    )
    assert lead.status_code == 201
    occupied = client.delete(f"/stages/{stages[0]['id']}", headers=auth(token))
    assert occupied.status_code == 409

    for stage in stages[1:5]:
        assert client.delete(f"/stages/{stage['id']}", headers=auth(token)).status_code == 200
    last = client.delete(f"/stages/{stages[5]['id']}", headers=auth(token))
    assert last.status_code == 409
    assert len(client.get("/stages/", headers=auth(token)).json()) == 2
