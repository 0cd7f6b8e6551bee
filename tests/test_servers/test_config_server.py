"""
Tests for the runtime config endpoint.
"""
from fastapi.testclient import TestClient

from tap_coordinator.servers import ConfigServer


def test_config_endpoint_returns_paymaster_url():
    client = TestClient(ConfigServer(paymaster_url_source=lambda: "https://paymaster.example/rpc"))

    response = client.get("/api/config")

    assert response.status_code == 200
    assert response.json() == {"paymasterServiceUrl": "https://paymaster.example/rpc"}
    assert response.headers["cache-control"] == "no-store"


def test_config_endpoint_reads_environment_per_request(monkeypatch):
    monkeypatch.delenv("PAYMASTER_SERVICE_URL", raising=False)
    client = TestClient(ConfigServer())

    assert client.get("/api/config").json() == {"paymasterServiceUrl": ""}

    monkeypatch.setenv("PAYMASTER_SERVICE_URL", "https://paymaster.example/rpc")
    assert client.get("/api/config").json() == {"paymasterServiceUrl": "https://paymaster.example/rpc"}


def test_custom_endpoint_path():
    client = TestClient(ConfigServer(paymaster_url_source=lambda: None, config_endpoint="/config.json"))

    assert client.get("/config.json").json() == {"paymasterServiceUrl": ""}
    assert client.get("/api/config").status_code == 404
