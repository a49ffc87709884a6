"""Unit tests for condition utilities."""

from __future__ import annotations

from generated_secrets_operator.utils.conditions import (
    get_condition,
    is_condition_true,
    remove_condition,
    set_error_condition,
    set_ready_condition,
    set_secrets_generated_condition,
    update_condition,
)


class TestConditions:
    """Test condition utilities."""

    def test_update_condition_new(self) -> None:
        """Test adding a new condition."""
        conditions = []
        result = update_condition(
            conditions, "TestCondition", "True", "TestReason", "Test message", observed_generation=1
        )

        assert len(result) == 1
        assert result[0]["type"] == "TestCondition"
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "TestReason"
        assert result[0]["message"] == "Test message"
        assert result[0]["observedGeneration"] == 1

    def test_update_condition_keeps_transition_time(self) -> None:
        """Test that lastTransitionTime only changes with the status."""
        conditions = [
            {
                "type": "Ready",
                "status": "True",
                "reason": "Old",
                "message": "Old message",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        update_condition(conditions, "Ready", "True", "New", "New message")
        assert conditions[0]["lastTransitionTime"] == "2023-01-01T00:00:00Z"
        assert conditions[0]["reason"] == "New"

        update_condition(conditions, "Ready", "False", "New", "New message")
        assert conditions[0]["lastTransitionTime"] != "2023-01-01T00:00:00Z"

    def test_set_ready_condition(self) -> None:
        """Test setting ready condition."""
        result = set_ready_condition([], True, "Ready", observed_generation=1)

        assert result[0]["type"] == "Ready"
        assert result[0]["status"] == "True"

    def test_remove_condition(self) -> None:
        """Test removing a condition by type."""
        conditions = [{"type": "Ready"}, {"type": "Error"}]

        remove_condition(conditions, "Error")

        assert conditions == [{"type": "Ready"}]

    def test_set_error_condition_implies_not_ready(self) -> None:
        """Test that an error also marks the resource not ready."""
        conditions = set_ready_condition([], True, "fine")

        set_error_condition(conditions, "GenerationFailed", "boom", observed_generation=2)

        assert is_condition_true(conditions, "Error")
        ready = get_condition(conditions, "Ready")
        assert ready["status"] == "False"
        assert ready["reason"] == "GenerationFailed"
        assert ready["message"] == "boom"

    def test_set_secrets_generated_clears_error(self) -> None:
        """Test that success removes the Error condition."""
        conditions = set_error_condition([], "GenerationFailed", "boom")

        set_secrets_generated_condition(conditions, 2, observed_generation=3)

        assert get_condition(conditions, "Error") is None
        ready = get_condition(conditions, "Ready")
        assert ready["status"] == "True"
        assert ready["reason"] == "SecretsGenerated"
        assert ready["message"] == "Successfully generated 2 secret(s)"
