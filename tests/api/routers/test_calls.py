"""Unit tests for calls router endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fliplive.api.dependency import User, get_current_user
from fliplive.api.errors import app_error_handler
from fliplive.api.routers.calls import get_call_registry, router
from fliplive.services.call_registry import CallRecord, CallRegistry, CallType
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


@pytest.fixture
def mock_user() -> User:
    return User(user_id="u.caller")


@pytest.fixture
def mock_registry() -> AsyncMock:
    return AsyncMock(spec=CallRegistry)


@pytest.fixture
def client(mock_user: User, mock_registry: AsyncMock) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_current_user] = lambda: mock_user
    app.dependency_overrides[get_call_registry] = lambda: mock_registry
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return TestClient(app)


@pytest.fixture
def sample_call() -> CallRecord:
    return CallRecord(
        call_id="ca_1",
        room_id="flip-call-ca_1",
        caller_id="u.caller",
        call_type=CallType.VIDEO,
        participants=["u.callee"],
        joined_user_ids=["u.caller"],
        created_at=datetime.now(timezone.utc),
    )


class TestCalls:
    def test_create_call(self, client, mock_registry, sample_call):
        mock_registry.create_call.return_value = sample_call

        response = client.post(
            "/calls/create", json={"participants": ["u.callee"], "call_type": "video"}
        )

        assert response.status_code == 200
        assert response.json()["results"]["room_id"] == "flip-call-ca_1"
        mock_registry.create_call.assert_called_once_with(
            caller_id="u.caller", participants=["u.callee"], call_type=CallType.VIDEO, chat_id=None
        )

    def test_create_call_without_participants(self, client, mock_registry):
        response = client.post("/calls/create", json={"participants": []})

        assert response.status_code == 422
        mock_registry.create_call.assert_not_called()

    def test_get_call(self, client, mock_registry, sample_call):
        mock_registry.get_call.return_value = sample_call

        response = client.get("/calls/get", params={"call_id": "ca_1"})

        assert response.status_code == 200
        assert response.json()["results"]["call_id"] == "ca_1"

    def test_get_expired_call(self, client, mock_registry):
        mock_registry.get_call.return_value = None

        response = client.get("/calls/get", params={"call_id": "ca_gone"})

        assert response.status_code == 404
        assert response.json()["errcode"] == "E_CALL_NOT_FOUND"

    def test_get_call_of_other_users_is_hidden(self, client, mock_registry, sample_call):
        mock_registry.get_call.return_value = sample_call.model_copy(
            update={"caller_id": "u.x", "participants": ["u.y"]}
        )

        response = client.get("/calls/get", params={"call_id": "ca_1"})

        assert response.status_code == 404

    def test_end_call(self, client, mock_registry):
        response = client.post("/calls/end", json={"call_id": "ca_1"})

        assert response.status_code == 200
        assert response.json()["results"] == "OK"
        mock_registry.end_call.assert_awaited_once_with("ca_1", "u.caller")

    def test_join_unknown_call(self, client, mock_registry):
        mock_registry.join_call.side_effect = AppError(
            errcode=AppErrorCode.E_CALL_NOT_FOUND,
            errmesg="Call not found or expired: ca_1",
            status_code=HttpStatusCode.NOT_FOUND,
        )

        response = client.post("/calls/join", json={"call_id": "ca_1"})

        assert response.status_code == 404
        assert response.json()["errkind"] == "NotFound"
