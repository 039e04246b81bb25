"""Tests for POST /export endpoint."""

from unittest.mock import AsyncMock, MagicMock, patch
from fastapi import FastAPI
from fastapi.testclient import TestClient

from meeting_export.api.routes.export import router
from meeting_export.api.auth import verify_worker_token
from meeting_export.clients.document_store import InMemoryDocumentStore
from meeting_export.adapters.registry import AdapterRegistry

from conftest import USER_ID

AUTH = {"Authorization": "Bearer test-key"}


def _make_app(store=None) -> FastAPI:
    """Build a test app with mocked dependencies."""
    app = FastAPI()
    app.include_router(router)

    # Override auth dependency so it never hits real Settings
    async def _noop_auth():
        return None

    app.dependency_overrides[verify_worker_token] = _noop_auth

    app.state.store = store or InMemoryDocumentStore()
    app.state.registry = AdapterRegistry()
    return app


def _mock_result(success=True, error_type=None):
    result = MagicMock()
    result.success = success
    result.error_type = error_type
    result.run_id = "run_1"
    result.export_time_ms = 12
    result.to_dict.return_value = {
        "user_id": USER_ID,
        "success": success,
        "error_type": error_type,
        "steps": [],
    }
    return result


class TestExportRoute:
    @patch("meeting_export.api.routes.export.ExportDispatcher")
    def test_success_returns_200(self, mock_dispatcher_cls):
        mock_dispatcher = AsyncMock()
        mock_dispatcher.export.return_value = _mock_result()
        mock_dispatcher_cls.return_value = mock_dispatcher

        client = TestClient(_make_app())
        response = client.post("/export", json={"user_id": USER_ID}, headers=AUTH)

        assert response.status_code == 200
        assert response.json()["success"] is True
        mock_dispatcher.export.assert_awaited_once_with(USER_ID)

    def test_missing_user_id_returns_422(self):
        client = TestClient(_make_app())
        response = client.post("/export", json={}, headers=AUTH)
        assert response.status_code == 422

    def test_empty_user_id_returns_422(self):
        client = TestClient(_make_app())
        response = client.post("/export", json={"user_id": ""}, headers=AUTH)
        assert response.status_code == 422

    @patch("meeting_export.api.routes.export.ExportDispatcher")
    def test_no_transcript_returns_404(self, mock_dispatcher_cls):
        mock_dispatcher = AsyncMock()
        mock_dispatcher.export.return_value = _mock_result(False, "NoTranscriptError")
        mock_dispatcher_cls.return_value = mock_dispatcher

        client = TestClient(_make_app())
        response = client.post("/export", json={"user_id": USER_ID}, headers=AUTH)

        assert response.status_code == 404
        assert response.json()["error_type"] == "NoTranscriptError"

    @patch("meeting_export.api.routes.export.ExportDispatcher")
    def test_repository_error_returns_500(self, mock_dispatcher_cls):
        mock_dispatcher = AsyncMock()
        mock_dispatcher.export.return_value = _mock_result(False, "RepositoryError")
        mock_dispatcher_cls.return_value = mock_dispatcher

        client = TestClient(_make_app())
        response = client.post("/export", json={"user_id": USER_ID}, headers=AUTH)

        assert response.status_code == 500

    @patch("meeting_export.api.routes.export.ExportDispatcher")
    def test_unexpected_error_returns_500(self, mock_dispatcher_cls):
        mock_dispatcher = AsyncMock()
        mock_dispatcher.export.side_effect = RuntimeError("store exploded")
        mock_dispatcher_cls.return_value = mock_dispatcher

        client = TestClient(_make_app())
        response = client.post("/export", json={"user_id": USER_ID}, headers=AUTH)

        assert response.status_code == 500
        assert response.json() == {"error": "store exploded", "success": False}

    def test_real_dispatcher_no_transcript(self):
        """Without mocks: an empty store means no transcript, so 404."""
        client = TestClient(_make_app())
        response = client.post("/export", json={"user_id": USER_ID}, headers=AUTH)

        assert response.status_code == 404
        assert response.json()["success"] is False
