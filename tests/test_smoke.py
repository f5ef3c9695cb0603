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


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_plain_text(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_banner(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "v1" in r.json["message"]


def test_unknown_route_is_json_404(client):
    r = client.get("/no-such-thing")
    assert r.status_code == 404
    assert "/no-such-thing" in r.json["message"]
    assert isinstance(r.json["stack"], list)


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"

    r = client.get("/health")
    assert len(r.headers["X-Request-ID"]) == 32


def test_schema_guardrail_reports_missing_tables(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'empty.db'}")
    monkeypatch.setenv("ENV", "test")
    client = create_app().test_client()

    # health endpoints never touch the schema
    assert client.get("/health").status_code == 200

    r = client.get("/customers")
    assert r.status_code == 500
    assert "notes (table)" in r.json["missing"]
    assert "customers (table)" in r.json["missing"]
