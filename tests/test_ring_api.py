from fastapi.testclient import TestClient

from hashring.config import RingConfig
from hashring.ring_api import create_app


def make_client(**kw) -> TestClient:
    return TestClient(create_app(RingConfig(**kw)))


def test_health_and_state():
    client = make_client(servers=["A", "B"], replicas=3)

    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "servers": 2, "nodes": 6}

    state = client.get("/ring/state").json()
    assert state["modulus"] == 256
    assert state["servers"] == ["A", "B"]
    positions = [n["position"] for n in state["nodes"]]
    assert positions == sorted(positions)


def test_lookup_matches_ring():
    client = make_client(servers=["A", "B", "C"])
    ring = client.app.state.ring

    r = client.get("/ring/lookup", params={"key": "hello"})
    assert r.status_code == 200
    body = r.json()
    assert body["server_id"] == ring.lookup("hello")
    assert body["position"] == ring.position_for("hello")


def test_lookup_on_empty_ring_is_503():
    client = make_client()

    r = client.get("/ring/lookup", params={"key": "hello"})
    assert r.status_code == 503
    assert r.json()["detail"]["error"] == "empty_ring"


def test_add_and_remove_server():
    client = make_client(servers=["A"])

    r = client.post("/ring/servers", json={"server_id": "B", "replicas": 4})
    assert r.status_code == 200
    assert len(r.json()["positions"]) == 4
    assert client.get("/ring/state").json()["servers"] == ["A", "B"]

    r = client.delete("/ring/servers/B")
    assert r.status_code == 200
    assert len(r.json()["removed"]) == 4
    assert client.get("/ring/state").json()["servers"] == ["A"]

    r = client.delete("/ring/servers/B")
    assert r.json()["removed"] == []


def test_add_server_to_full_ring_is_409():
    client = make_client(modulus=4)

    r = client.post("/ring/servers", json={"server_id": "B", "replicas": 5})
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "position_collision"
    assert client.get("/ring/state").json()["servers"] == []


def test_negative_replicas_is_422():
    client = make_client(servers=["A"])

    r = client.post("/ring/servers", json={"server_id": "B", "replicas": -2})
    assert r.status_code == 422


def test_replicas_endpoint():
    client = make_client(servers=["A", "B", "C"])

    r = client.get("/ring/replicas", params={"key": "k", "r": 2})
    reps = r.json()["replicas"]
    assert len(reps) == 2
    assert reps[0] == client.app.state.ring.lookup("k")
