"""
Tests for the error hierarchy and HTTP error mapping.
"""

import httpx
import pytest

from meeting_export.errors import (
    IncompleteIntegrationError,
    InvalidCredentialError,
    MeetingExportError,
    NoTranscriptError,
    PartialSuccessResult,
    ProviderApiError,
    ProviderTimeoutError,
    RunError,
    StepError,
    TokenRefreshError,
    TransientProviderError,
    UserNotFoundError,
    error_for_status,
    wrap_http_error,
)


class TestErrorHierarchy:
    """Test the exception hierarchy."""

    def test_base_error_with_context(self):
        """Context is kept and rendered."""
        error = MeetingExportError("Boom", context={"user_id": "u1"})
        assert error.message == "Boom"
        assert error.context == {"user_id": "u1"}
        assert "user_id" in str(error)

    def test_base_error_without_context(self):
        error = MeetingExportError("Boom")
        assert str(error) == "Boom"

    def test_run_errors(self):
        """Transcript and user lookups abort the run."""
        assert issubclass(NoTranscriptError, RunError)
        assert issubclass(UserNotFoundError, RunError)
        assert not issubclass(RunError, StepError)

    def test_step_errors(self):
        """Credential, integration, refresh and API errors are step-scoped."""
        for cls in (InvalidCredentialError, IncompleteIntegrationError, TokenRefreshError, ProviderApiError):
            assert issubclass(cls, StepError)
        assert issubclass(ProviderTimeoutError, TransientProviderError)

    def test_provider_api_error_fields(self):
        error = ProviderApiError("bad", provider="Linear", status_code=400, payload={"x": 1})
        assert error.provider == "Linear"
        assert error.status_code == 400
        assert error.payload == {"x": 1}


class TestErrorMapping:
    """Test mapping of transport errors and status codes."""

    def test_wrap_timeout(self):
        error = wrap_http_error(httpx.ReadTimeout("slow"), "Notion")
        assert isinstance(error, ProviderTimeoutError)
        assert error.context["error_type"] == "ReadTimeout"

    def test_wrap_connect_error(self):
        error = wrap_http_error(httpx.ConnectError("refused"), "Slack")
        assert type(error) is TransientProviderError

    def test_wrap_generic(self):
        error = wrap_http_error(httpx.DecodingError("bad"), "Slack")
        assert type(error) is ProviderApiError

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses_mean_reconnect(self, status):
        error = error_for_status("HubSpot", status, {"message": "expired"})
        assert isinstance(error, InvalidCredentialError)
        assert "reconnect HubSpot" in error.message

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_transient_statuses(self, status):
        error = error_for_status("Monday.com", status, None)
        assert isinstance(error, TransientProviderError)
        assert error.status_code == status

    def test_client_error_is_not_transient(self):
        error = error_for_status("Salesforce", 400, [{"errorCode": "REQUIRED_FIELD_MISSING"}])
        assert type(error) is ProviderApiError
        assert error.payload == [{"errorCode": "REQUIRED_FIELD_MISSING"}]


class TestPartialSuccessResult:
    """Test partial success handling."""

    def test_empty_result(self):
        result = PartialSuccessResult()
        assert result.total_count == 0
        assert result.all_succeeded is True
        assert result.partial_success is False

    def test_partial_success(self):
        result = PartialSuccessResult()
        result.add_success("ai_1")
        result.add_failure(ProviderApiError("rejected"), "ai_2")

        assert result.partial_success is True
        assert result.all_failed is False

    def test_to_dict(self):
        result = PartialSuccessResult()
        result.add_success("ai_1")
        result.add_failure(ProviderApiError("rejected"), "ai_2")

        data = result.to_dict()

        assert data["succeeded_ids"] == ["ai_1"]
        assert data["failed_ids"] == ["ai_2"]
        assert data["errors"] == [{"item_id": "ai_2", "error": "rejected"}]
