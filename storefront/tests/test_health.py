from fastapi.testclient import TestClient
from storefront.main import app

client = TestClient(app)


def test_health_ok():
    r = client.get("/api/health")
    assert r.status_code == 200
    data = r.json()
    # Basic contract checks
    assert data.get("status") == "ok"
    assert isinstance(data.get("env"), dict)
    assert isinstance(data.get("probes"), dict)
    assert data["probes"]["upstream"] == "skip"


def test_health_probe_ok(client, platform):
    platform.on("GET", "/health", json={"status": "ok"})
    data = client.get("/api/health", params={"probe": "true"}).json()
    assert data["probes"]["upstream"] == "ok"
    assert data["env"]["storage_backend"] == "memory"
    assert data["env"]["api_root"] == "http://platform.test/api"


def test_health_probe_failure(client, platform):
    platform.on("GET", "/health", status=503, json={"error": "maintenance"})
    data = client.get("/api/health", params={"probe": "true"}).json()
    assert data["probes"]["upstream"] == "fail (503)"
    assert data["status"] == "ok"
