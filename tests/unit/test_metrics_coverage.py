"""
Tests for observability metrics.

Tests all metric recording functions.
"""
from unittest.mock import Mock, patch
from prometheus_client import REGISTRY
from converge.core.enums import PollState, VerificationStatus
from converge.observability.metrics import (
    init_system_info,
    record_poll,
    record_poll_outcome,
    record_verification,
)


class TestMetricsCoverage:
    """Test all metric recording functions."""

    def test_record_poll(self):
        """Test record_poll increments the fetch counter."""
        with patch("converge.observability.metrics.polls_total") as mock_counter:
            mock_labels = Mock()
            mock_counter.labels.return_value = mock_labels

            record_poll("TaskRun")

            mock_counter.labels.assert_called_once_with(kind="TaskRun")
            mock_labels.inc.assert_called_once()

    def test_record_poll_outcome(self):
        """Test record_poll_outcome increments counter and records duration."""
        with patch("converge.observability.metrics.poll_outcomes_total") as mock_counter:
            with patch("converge.observability.metrics.poll_wait_seconds") as mock_histogram:
                mock_counter_labels = Mock()
                mock_counter.labels.return_value = mock_counter_labels
                mock_histogram_labels = Mock()
                mock_histogram.labels.return_value = mock_histogram_labels

                record_poll_outcome("Pod", PollState.SATISFIED, 1.5)

                mock_counter.labels.assert_called_once_with(kind="Pod", state="SATISFIED")
                mock_counter_labels.inc.assert_called_once()
                mock_histogram.labels.assert_called_once_with(kind="Pod", state="SATISFIED")
                mock_histogram_labels.observe.assert_called_once_with(1.5)

    def test_record_verification_updates_registry(self):
        """Test record_verification is visible in the default registry."""
        labels = {"status": "MISMATCHED"}
        before = REGISTRY.get_sample_value("converge_verifications_total", labels) or 0.0

        record_verification(VerificationStatus.MISMATCHED)

        after = REGISTRY.get_sample_value("converge_verifications_total", labels)
        assert after == before + 1

    def test_init_system_info(self):
        """Test init_system_info publishes the version."""
        init_system_info("9.9.9")

        assert REGISTRY.get_sample_value("converge_system_info", {"version": "9.9.9"}) == 1.0
