import pytest

from app.crm import create_app
from app.crm.models import Base


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    return app.test_client()


def test_crud(client):
    r = client.post("/invoice-types", json={"name": "Monthly", "description": "Billed at month end"})
    assert r.status_code == 201
    it_id = r.json["id"]

    r = client.put(f"/invoice-types/{it_id}", json={"name": "Monthly (closing 20th)"})
    assert r.status_code == 200
    assert r.json["name"] == "Monthly (closing 20th)"
    assert r.json["description"] is None

    assert [it["id"] for it in client.get("/invoice-types").json] == [it_id]

    r = client.delete(f"/invoice-types/{it_id}")
    assert r.status_code == 200
    assert client.get(f"/invoice-types/{it_id}").status_code == 404


def test_name_is_required(client):
    r = client.post("/invoice-types", json={"description": "no name"})
    assert r.status_code == 422
    assert r.json["errors"][0]["field"] == "name"


def test_duplicate_name_is_database_error(client):
    assert client.post("/invoice-types", json={"name": "Prepaid"}).status_code == 201
    r = client.post("/invoice-types", json={"name": "Prepaid"})
    assert r.status_code == 500
    assert "UNIQUE" in r.json["message"].upper()
    assert len(client.get("/invoice-types").json) == 1


def test_delete_in_use_is_refused(client):
    it_id = client.post("/invoice-types", json={"name": "Monthly"}).json["id"]
    r = client.post("/customers", json={"name": "Acme", "invoice_type_id": it_id})
    assert r.status_code == 201

    r = client.delete(f"/invoice-types/{it_id}")
    assert r.status_code == 500
    assert client.get(f"/invoice-types/{it_id}").status_code == 200
