"""Unit tests for core enums."""
import pytest
from converge.core.enums import (
    BackoffPolicy,
    ConditionStatus,
    PodPhase,
    PollState,
    VerificationStatus,
)


class TestPollStateEnum:
    """Test PollState enum values and behavior."""

    def test_poll_state_values(self):
        """Test PollState has the four states of the poll state machine."""
        assert [s.value for s in PollState] == ["PENDING", "SATISFIED", "FAILED", "TIMED_OUT"]

    def test_poll_state_string_representation(self):
        """Test PollState str() returns the value."""
        assert str(PollState.TIMED_OUT) == "TIMED_OUT"

    def test_poll_state_is_string_enum(self):
        """Test PollState compares equal to its value."""
        assert PollState.SATISFIED == "SATISFIED"


class TestPodPhaseEnum:
    """Test PodPhase enum values."""

    def test_pod_phase_values_match_api(self):
        """Test PodPhase values match the orchestration API spelling."""
        assert {p.value for p in PodPhase} == {
            "Pending",
            "Running",
            "Succeeded",
            "Failed",
            "Unknown",
        }

    def test_pod_phase_from_value(self):
        """Test PodPhase can be built from an API value."""
        assert PodPhase("Succeeded") is PodPhase.SUCCEEDED

    def test_pod_phase_rejects_unknown_value(self):
        """Test invalid phases raise ValueError."""
        with pytest.raises(ValueError):
            PodPhase("Done")


class TestOtherEnums:
    """Test the remaining enums."""

    def test_condition_status_values(self):
        assert str(ConditionStatus.TRUE) == "True"
        assert str(ConditionStatus.FALSE) == "False"
        assert str(ConditionStatus.UNKNOWN) == "Unknown"

    def test_backoff_policy_values(self):
        assert BackoffPolicy("exponential") is BackoffPolicy.EXPONENTIAL
        assert str(BackoffPolicy.JITTER) == "jitter"

    def test_verification_status_values(self):
        assert str(VerificationStatus.MATCHED) == "MATCHED"
        assert str(VerificationStatus.MISMATCHED) == "MISMATCHED"
        assert str(VerificationStatus.FAILED) == "FAILED"
