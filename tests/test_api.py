"""
HTTP and WebSocket surface tests.

The full app runs through TestClient, mostly with the in-memory store behind
it; one group runs over the Kubernetes adapter with its API classes mocked.
"""

import re
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from fastapi.testclient import TestClient

from kubeship.main import create_app
from kubeship.modules.store import ResourceKind, ResourceStoreError
from kubeship.modules.store.kubernetes import KubernetesResourceStore

DEMO_REQUEST = {"image_name": "ghcr.io/u/r:latest", "app_name": "demo", "port": 4000}


@pytest.fixture
def frozen_clock(monkeypatch):
    """Pin job id timestamps to 1700000000000."""
    monkeypatch.setattr(
        "kubeship.modules.jobs.identity.time", SimpleNamespace(time=lambda: 1700000000.0)
    )


# =============================================================================
# POST /deploy
# =============================================================================


class TestDeployEndpoint:
    def test_deploy_success(self, api_client, memory_store):
        response = api_client.post("/deploy", json=DEMO_REQUEST)

        assert response.status_code == 200
        data = response.json()
        assert re.fullmatch(r"demo-\d+", data["job_id"])
        assert data["status"] == "completed"
        assert data["domain"] == "demo.example.test"
        assert data["url"] == "https://demo.example.test"
        assert [(r["kind"], r["action"]) for r in data["resources"]] == [
            ("Deployment", "created"),
            ("Service", "created"),
            ("Ingress", "created"),
        ]
        assert memory_store.get(ResourceKind.SERVICE, "demo")["spec"]["ports"] == [
            {"port": 80, "targetPort": 4000}
        ]

    def test_missing_app_name(self, api_client, memory_store):
        response = api_client.post("/deploy", json={"image_name": "ghcr.io/u/r:latest"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Missing required fields: image_name, app_name"
        assert data["received"] == {"image_name": True, "app_name": False}
        assert memory_store.calls == []

    def test_empty_image_name_counts_as_missing(self, api_client, memory_store):
        response = api_client.post("/deploy", json={"image_name": "", "app_name": "demo"})

        assert response.status_code == 400
        assert response.json()["received"] == {"image_name": False, "app_name": True}
        assert memory_store.calls == []

    def test_null_image_name_counts_as_missing(self, api_client, memory_store):
        response = api_client.post("/deploy", json={"image_name": None, "app_name": "demo"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Missing required fields: image_name, app_name"
        assert data["received"] == {"image_name": False, "app_name": True}
        assert memory_store.calls == []

    def test_invalid_json(self, api_client, memory_store):
        response = api_client.post(
            "/deploy", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON body"
        assert memory_store.calls == []

    def test_invalid_app_name(self, api_client, memory_store):
        response = api_client.post(
            "/deploy", json={"image_name": "ghcr.io/u/r:latest", "app_name": "Demo_App"}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid request"
        assert data["details"][0]["field"] == "app_name"
        assert memory_store.calls == []

    def test_port_out_of_range(self, api_client):
        response = api_client.post("/deploy", json={**DEMO_REQUEST, "port": 70000})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "port"

    def test_build_app_name_must_leave_room_for_job_id(self, api_client, memory_store):
        response = api_client.post(
            "/deploy",
            json={"image_name": "shop", "app_name": "a" * 50, "repo_url": "https://github.com/u/shop"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid request"
        assert "at most 49 characters" in data["details"][0]["message"]
        assert memory_store.calls == []

    def test_long_app_name_allowed_without_build(self, api_client, memory_store):
        response = api_client.post(
            "/deploy", json={"image_name": "ghcr.io/u/r:latest", "app_name": "a" * 50}
        )

        assert response.status_code == 200

    def test_build_app_name_at_limit(self, api_client, memory_store):
        response = api_client.post(
            "/deploy",
            json={"image_name": "shop", "app_name": "a" * 49, "repo_url": "https://github.com/u/shop"},
        )

        assert response.status_code == 200
        assert len(response.json()["job_id"]) <= 63

    def test_convergence_failure(self, api_client, memory_store):
        memory_store.fail_on(
            "create", ResourceKind.SERVICE, ResourceStoreError("services is forbidden", 403)
        )

        response = api_client.post("/deploy", json=DEMO_REQUEST)

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "services is forbidden"
        assert re.fullmatch(r"demo-\d+", data["job_id"])
        assert [r["action"] for r in data["resources"]] == ["created", "failed", "skipped"]

    def test_build_deploy_starts(self, api_client, memory_store):
        response = api_client.post(
            "/deploy",
            json={"image_name": "shop", "app_name": "shop", "repo_url": "https://github.com/u/shop"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "started"
        assert memory_store.get(ResourceKind.JOB, data["job_id"]) is not None



# =============================================================================
# Unreachable cluster
# =============================================================================


@pytest.fixture
def unreachable_client(config_provider):
    """App over a Kubernetes store whose API server never answers."""
    api_client = MagicMock()
    api_client.close = AsyncMock()
    store = KubernetesResourceStore(api_client, namespace="apps")
    refused = aiohttp.ClientConnectionError("Cannot connect to host kubernetes.default.svc:443")
    store._apis = {group: AsyncMock() for group in ("apps", "core", "networking", "batch")}
    store._apis["apps"].replace_namespaced_deployment.side_effect = refused
    store._apis["batch"].read_namespaced_job.side_effect = refused

    app = create_app(store=store, config_provider=config_provider)
    with TestClient(app) as client:
        yield client


class TestUnreachableCluster:
    def test_deploy_reports_json_error_with_resources(self, unreachable_client):
        response = unreachable_client.post("/deploy", json=DEMO_REQUEST)

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        data = response.json()
        assert "Cannot connect" in data["error"]
        assert re.fullmatch(r"demo-\d+", data["job_id"])
        assert [r["action"] for r in data["resources"]] == ["failed", "skipped", "skipped"]

    def test_status_reports_json_error(self, unreachable_client):
        response = unreachable_client.get("/status/demo-1700000000000")

        assert response.status_code == 500
        assert "Cannot connect" in response.json()["error"]

# =============================================================================
# GET /status/{job_id}
# =============================================================================


class TestStatusEndpoint:
    def test_status_after_deploy(self, api_client, memory_store):
        job_id = api_client.post("/deploy", json=DEMO_REQUEST).json()["job_id"]

        response = api_client.get(f"/status/{job_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["job_id"] == job_id
        assert data["status"] == "running"
        assert data["phase"] == "deploying"
        assert data["timestamp"]

    def test_status_completed_once_ready(self, api_client, memory_store):
        job_id = api_client.post("/deploy", json=DEMO_REQUEST).json()["job_id"]
        memory_store.set_status(ResourceKind.DEPLOYMENT, "demo", replicas=1, readyReplicas=1)

        data = api_client.get(f"/status/{job_id}").json()

        assert data["status"] == "completed"
        assert data["message"] == "Deployment successful"

    def test_unknown_job(self, api_client):
        response = api_client.get("/status/ghost-1700000000000")

        assert response.status_code == 404
        assert response.json() == {"error": "Deployment not found"}

    def test_malformed_job_id(self, api_client):
        response = api_client.get("/status/v1-2")

        assert response.status_code == 404
        assert response.json() == {"error": "Deployment not found"}

    def test_store_fault(self, api_client, memory_store):
        memory_store.fail_on(
            "read", ResourceKind.JOB, ResourceStoreError("connection refused", status=503)
        )

        response = api_client.get("/status/demo-1700000000000")

        assert response.status_code == 500
        assert response.json() == {"error": "connection refused"}


# =============================================================================
# GET /logs/{job_id}
# =============================================================================


class TestLogsEndpoint:
    def test_streams_pod_output(self, api_client, memory_store):
        memory_store.put(
            ResourceKind.POD,
            {"metadata": {"name": "demo-abc", "labels": {"job-name": "demo-1700000000000"}}},
        )
        memory_store.pod_logs["demo-abc"] = [b"cloning\n", b"building\n", b"pushed\n"]

        response = api_client.get("/logs/demo-1700000000000")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "cloning\nbuilding\npushed\n"

    def test_no_pod(self, api_client):
        response = api_client.get("/logs/demo-1700000000000")

        assert response.status_code == 404
        assert response.json() == {"error": "Pod not found"}

    def test_pod_not_ready_for_logs(self, api_client, memory_store):
        memory_store.put(
            ResourceKind.POD,
            {"metadata": {"name": "demo-abc", "labels": {"job-name": "demo-1700000000000"}}},
        )
        memory_store.fail_on(
            "logs",
            ResourceKind.POD,
            ResourceStoreError('container "buildctl" is waiting to start: PodInitializing', 400),
        )

        response = api_client.get("/logs/demo-1700000000000")

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "error": 'container "buildctl" is waiting to start: PodInitializing'
        }

    def test_pod_lookup_fault(self, api_client, memory_store):
        memory_store.fail_on("list", ResourceKind.POD, ResourceStoreError("forbidden", 403))

        response = api_client.get("/logs/demo-1700000000000")

        assert response.status_code == 500
        assert response.json() == {"error": "forbidden"}


# =============================================================================
# GET /health
# =============================================================================


def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["timestamp"]


# =============================================================================
# WebSocket /ws
# =============================================================================


class TestEventChannel:
    def test_subscriber_receives_deploy_events(self, api_client, frozen_clock):
        with api_client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "subscribe", "job_id": "demo-1700000000000"})
            assert ws.receive_json() == {"action": "subscribed", "job_id": "demo-1700000000000"}

            response = api_client.post("/deploy", json=DEMO_REQUEST)
            assert response.json()["job_id"] == "demo-1700000000000"

            events = [ws.receive_json() for _ in range(4)]

        assert [e["message"] for e in events] == [
            "Deployment demo created",
            "Service demo created",
            "Ingress demo-ingress created",
            "demo converged",
        ]
        assert all(e["job_id"] == "demo-1700000000000" for e in events)
        assert all(e["level"] == "info" for e in events)

    def test_unsubscribe_ack(self, api_client):
        with api_client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "subscribe", "job_id": "demo-1"})
            ws.receive_json()
            ws.send_json({"action": "unsubscribe", "job_id": "demo-1"})

            assert ws.receive_json() == {"action": "unsubscribed", "job_id": "demo-1"}

    @pytest.mark.parametrize(
        "payload",
        ['{"action": "shout", "job_id": "demo-1"}', '{"action": "subscribe"}', "not json"],
    )
    def test_invalid_control_message(self, api_client, payload):
        with api_client.websocket_connect("/ws") as ws:
            ws.send_text(payload)

            assert ws.receive_json() == {"error": "Invalid control message"}

