"""Tests for rank-ordered customer notes (create / reposition / delete)."""
import threading
import time

import pytest

from app.crm import create_app
from app.crm.db import session_scope
from app.crm.errors import DataBaseError
from app.crm.models import Base
from app.crm.modules.customers.models import Customer
from app.crm.modules.notes import service as notes_service
from app.crm.modules.notes.models import Note


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add_all([Customer(id=1, name="Acme", notes=0), Customer(id=2, name="Globex", notes=0)])

    return app.test_client()


def _create(client, rank, content, customer_id=1, **extra):
    r = client.post(f"/notes/{customer_id}", json={"rank": rank, "content": content, **extra})
    assert r.status_code == 201, r.json
    return r.json


def _move(client, old_rank, new_rank, content, customer_id=1):
    return client.put(f"/notes/{customer_id}/{old_rank}", json={"rank": new_rank, "content": content})


def _listed(client, customer_id=1):
    r = client.get(f"/notes/{customer_id}")
    assert r.status_code == 200
    return [(n["rank"], n["content"]) for n in r.json]


def _note_count(client, customer_id=1):
    with session_scope(client.application) as s:
        return s.get(Customer, customer_id).notes


def test_create_first_note(client):
    body = _create(client, 1, "call back on monday", title="todo")
    assert body["rank"] == 1
    assert body["customer_id"] == 1
    assert body["title"] == "todo"
    assert body["id"]
    assert _listed(client) == [(1, "call back on monday")]
    assert _note_count(client) == 1


def test_create_at_occupied_rank_shifts_followers(client):
    _create(client, 1, "A")
    _create(client, 2, "B")
    _create(client, 3, "C")

    body = _create(client, 2, "N")
    assert body["rank"] == 2
    assert _listed(client) == [(1, "A"), (2, "N"), (3, "B"), (4, "C")]
    assert _note_count(client) == 4


def test_create_past_the_end_appends(client):
    _create(client, 1, "A")
    _create(client, 2, "B")

    body = _create(client, 10, "Z")
    assert body["rank"] == 3
    assert _listed(client) == [(1, "A"), (2, "B"), (3, "Z")]


def test_rank_string_is_coerced(client):
    body = _create(client, "1", "A")
    assert body["rank"] == 1


def test_ranks_stay_contiguous_under_mixed_operations(client):
    expected: list[str] = []

    def clamp(rank, size):
        return max(1, min(rank, size + 1))

    ops = [
        ("create", 1, "a"),
        ("create", 1, "b"),
        ("create", 5, "c"),
        ("create", 2, "d"),
        ("move", 1, 4, "b2"),
        ("create", 3, "e"),
        ("move", 5, 1, "c2"),
        ("move", 2, 9, "a2"),
        ("create", 4, "f"),
        ("move", 3, 3, "d2"),
    ]
    for op in ops:
        if op[0] == "create":
            _, rank, content = op
            _create(client, rank, content)
            expected.insert(clamp(rank, len(expected)) - 1, content)
        else:
            _, old, new, content = op
            r = _move(client, old, new, content)
            assert r.status_code == 200, r.json
            if old == new:
                expected[old - 1] = content
            else:
                expected.pop(old - 1)
                expected.insert(clamp(new, len(expected)) - 1, content)

        listed = _listed(client)
        assert [rank for rank, _ in listed] == list(range(1, len(expected) + 1))
        assert [content for _, content in listed] == expected
        assert _note_count(client) == len(expected)


def test_reposition_same_rank_updates_in_place(client, monkeypatch):
    _create(client, 1, "A")
    before = _create(client, 2, "B")
    _create(client, 3, "C")

    calls = []
    monkeypatch.setattr(notes_service, "slide_over_ranks", lambda *a, **k: calls.append("slide"))
    monkeypatch.setattr(notes_service, "push_aside_ranks", lambda *a, **k: calls.append("push"))

    r = client.put("/notes/1/2", json={"rank": 2, "content": "B edited", "title": "t"})
    assert r.status_code == 200
    assert r.json["id"] == before["id"]
    assert r.json["rank"] == 2
    assert r.json["title"] == "t"
    assert calls == []
    assert _listed(client) == [(1, "A"), (2, "B edited"), (3, "C")]


def test_reposition_without_title_keeps_stored_title(client):
    _create(client, 1, "A", title="first")
    _create(client, 2, "B", title="second")

    r = client.put("/notes/1/1", json={"rank": 1, "content": "A edited"})
    assert r.json["title"] == "first"

    r = client.put("/notes/1/2", json={"rank": 1, "content": "B moved"})
    assert r.json["rank"] == 1
    assert r.json["title"] == "second"

    r = client.put("/notes/1/1", json={"rank": 1, "content": "B moved", "title": None})
    assert r.json["title"] is None


def test_reposition_moves_note_and_keeps_created_at(client):
    first = _create(client, 1, "A")
    _create(client, 2, "B")
    _create(client, 3, "C")
    _create(client, 4, "D")

    r = _move(client, 1, 3, "A moved")
    assert r.status_code == 200
    assert r.json["rank"] == 3
    assert r.json["created_at"] == first["created_at"]
    assert _listed(client) == [(1, "B"), (2, "C"), (3, "A moved"), (4, "D")]
    assert _note_count(client) == 4


def test_reposition_to_front(client):
    _create(client, 1, "A")
    _create(client, 2, "B")
    _create(client, 3, "C")

    r = _move(client, 3, 1, "C")
    assert r.status_code == 200
    assert _listed(client) == [(1, "C"), (2, "A"), (3, "B")]


def test_reposition_missing_note_is_404_and_changes_nothing(client):
    _create(client, 1, "A")
    _create(client, 2, "B")

    r = _move(client, 7, 1, "X")
    assert r.status_code == 404
    assert _listed(client) == [(1, "A"), (2, "B")]


def test_delete_leaves_gap_until_next_insert(client):
    _create(client, 1, "A")
    _create(client, 2, "B")
    _create(client, 3, "C")

    r = client.delete("/notes/1/2")
    assert r.status_code == 200
    assert r.json["rowCount"] == 1
    assert _listed(client) == [(1, "A"), (3, "C")]
    assert _note_count(client) == 2

    body = _create(client, 3, "D")
    assert body["rank"] == 3
    assert _listed(client) == [(1, "A"), (2, "C"), (3, "D")]
    assert _note_count(client) == 3


def test_delete_missing_note_is_404(client):
    _create(client, 1, "A")
    r = client.delete("/notes/1/5")
    assert r.status_code == 404
    assert _note_count(client) == 1


def test_failed_insert_rolls_back_the_whole_create(client):
    _create(client, 1, "A")
    _create(client, 2, "B")
    _create(client, 3, "C")

    app = client.application
    calls = []
    real_push = notes_service.push_aside_ranks

    def spy(s, customer_id, target_rank):
        calls.append(target_rank)
        return real_push(s, customer_id, target_rank)

    notes_service.push_aside_ranks = spy
    try:
        with pytest.raises(DataBaseError) as exc:
            with session_scope(app) as s:
                # content is NOT NULL: the insert fails after the ranks were shifted
                notes_service.create_note(s, 1, 1, {"content": None})
    finally:
        notes_service.push_aside_ranks = real_push

    assert calls == [1]
    assert exc.value.status == 500
    assert _listed(client) == [(1, "A"), (2, "B"), (3, "C")]
    assert _note_count(client) == 3


def test_database_failure_is_reported_with_status(client, monkeypatch):
    _create(client, 1, "A")

    def boom(s, customer_id):
        raise DataBaseError("could not serialize access", 500)

    monkeypatch.setattr(notes_service, "slide_over_ranks", boom)
    r = client.post("/notes/1", json={"rank": 1, "content": "B"})
    assert r.status_code == 500
    assert r.json["message"] == "could not serialize access"
    assert _listed(client) == [(1, "A")]
    assert _note_count(client) == 1


def test_customers_are_independent(client):
    _create(client, 1, "A", customer_id=1)
    _create(client, 2, "B", customer_id=1)
    _create(client, 1, "X", customer_id=2)
    _create(client, 1, "Y", customer_id=2)

    assert _listed(client, 1) == [(1, "A"), (2, "B")]
    assert _listed(client, 2) == [(1, "Y"), (2, "X")]
    assert _note_count(client, 1) == 2
    assert _note_count(client, 2) == 2


def test_unknown_customer_is_404(client):
    assert client.get("/notes/99").status_code == 404
    r = client.post("/notes/99", json={"rank": 1, "content": "A"})
    assert r.status_code == 404
    with session_scope(client.application) as s:
        assert s.query(Note).count() == 0


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"content": "A"}, "rank"),
        ({"rank": 0, "content": "A"}, "rank"),
        ({"rank": "abc", "content": "A"}, "rank"),
        ({"rank": True, "content": "A"}, "rank"),
        ({"rank": 1}, "content"),
        ({"rank": 1, "content": "   "}, "content"),
        ({"rank": 1, "content": "A", "title": "x" * 101}, "title"),
    ],
)
def test_create_validation(client, payload, field):
    r = client.post("/notes/1", json=payload)
    assert r.status_code == 422
    assert field in [e["field"] for e in r.json["errors"]]


def test_non_object_body_is_rejected(client):
    r = client.post("/notes/1", json=[1, 2, 3])
    assert r.status_code == 422
    assert r.json["errors"][0]["field"] == "body"


def test_path_rank_zero_is_rejected(client):
    r = client.delete("/notes/1/0")
    assert r.status_code == 422


def test_concurrent_creates_keep_note_count_in_step(client, monkeypatch):
    app = client.application
    real_count = notes_service.count_notes

    def slow_count(s, customer_id):
        n = real_count(s, customer_id)
        # hold the counted value long enough for the other writer to catch up
        time.sleep(0.2)
        return n

    monkeypatch.setattr(notes_service, "count_notes", slow_count)

    start = threading.Barrier(2)
    errors: list[Exception] = []

    def worker(label):
        start.wait()
        try:
            with session_scope(app) as s:
                notes_service.create_note(s, 1, 1, {"content": label})
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(label,)) for label in ("first", "second")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    listed = _listed(client)
    assert [rank for rank, _ in listed] == [1, 2]
    assert sorted(content for _, content in listed) == ["first", "second"]
    assert _note_count(client) == 2
