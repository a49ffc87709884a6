"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from unittest.mock import patch

from generated_secrets_operator.utils.events import (
    emit_cleanup_abandoned,
    emit_drift_detected,
    emit_event,
    emit_reconcile_started,
    emit_secret_create_failed,
    emit_secret_created,
)

BODY = {"metadata": {"name": "creds", "namespace": "apps"}}


class TestEmitEvent:
    """Test cases for emit_event function."""

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_event_normal(self, mock_event):
        """Test emitting normal event."""
        emit_event(BODY, "TestReason", "Test message")

        mock_event.assert_called_once_with(
            BODY,
            reason="TestReason",
            message="Test message",
            type="Normal",
        )

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_event_warning(self, mock_event):
        """Test emitting warning event."""
        emit_event(BODY, "ErrorReason", "Error occurred", type_="Warning")

        mock_event.assert_called_once_with(
            BODY,
            reason="ErrorReason",
            message="Error occurred",
            type="Warning",
        )

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_event_failure_is_swallowed(self, mock_event):
        """Test that a failure to post never propagates."""
        mock_event.side_effect = RuntimeError("no operator context")

        emit_event(BODY, "TestReason", "Test message")

        mock_event.assert_called_once()


class TestResourceEvents:
    """Test cases for GeneratedSecret events."""

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_reconcile_started(self, mock_event):
        """Test emitting reconcile started event."""
        emit_reconcile_started(BODY)

        call = mock_event.call_args
        assert call.kwargs["reason"] == "ReconcileStarted"
        assert call.kwargs["type"] == "Normal"

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_secret_created(self, mock_event):
        """Test emitting secret created event."""
        emit_secret_created(BODY, "a", "creds")

        call = mock_event.call_args
        assert call.kwargs["reason"] == "SecretCreated"
        assert call.kwargs["message"] == "Created secret a/creds"

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_secret_create_failed(self, mock_event):
        """Test emitting secret create failed event."""
        emit_secret_create_failed(BODY, "b", "already exists")

        call = mock_event.call_args
        assert call.kwargs["reason"] == "SecretCreateFailed"
        assert call.kwargs["type"] == "Warning"
        assert "'b'" in call.kwargs["message"]

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_drift_detected(self, mock_event):
        """Test emitting drift detected event."""
        emit_drift_detected(BODY, "a", "creds")

        call = mock_event.call_args
        assert call.kwargs["reason"] == "DriftDetected"
        assert call.kwargs["type"] == "Warning"

    @patch("generated_secrets_operator.utils.events.kopf.event")
    def test_emit_cleanup_abandoned(self, mock_event):
        """Test emitting cleanup abandoned event."""
        emit_cleanup_abandoned(BODY, 3)

        call = mock_event.call_args
        assert call.kwargs["reason"] == "CleanupAbandoned"
        assert "3 attempts" in call.kwargs["message"]
