"""Tests for router discovery and the health endpoint."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from fliplive.shared.api.utils import load_routes


class TestLoadRoutes:
    def test_routers_are_mounted_under_prefix(self):
        app = FastAPI()

        load_routes(app, "/api/v1")

        paths = {route.path for route in app.routes}
        assert "/health" in paths
        assert "/api/v1/live/create" in paths
        assert "/api/v1/live/seat/join" in paths
        assert "/api/v1/economy/balance" in paths
        assert "/api/v1/payments/verify" in paths
        assert "/api/v1/calls/create" in paths

    def test_health(self):
        app = FastAPI()
        load_routes(app, "/api/v1")

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["results"] == "OK"
