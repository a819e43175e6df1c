"""Prometheus metrics for Converge."""
from prometheus_client import Counter, Histogram, Info
from converge.core.enums import PollState, VerificationStatus


# Poll metrics
polls_total = Counter(
    'converge_polls_total',
    'Total number of object fetches issued by the poller',
    ['kind']
)

poll_outcomes_total = Counter(
    'converge_poll_outcomes_total',
    'Total number of terminal poll outcomes',
    ['kind', 'state']
)

poll_wait_seconds = Histogram(
    'converge_poll_wait_seconds',
    'Time spent waiting for a condition in seconds',
    ['kind', 'state'],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0]
)

# Verification metrics
verifications_total = Counter(
    'converge_verifications_total',
    'Total number of cross-system comparisons',
    ['status']
)

# System info
system_info = Info(
    'converge_system',
    'Converge system information'
)


def record_poll(kind: str) -> None:
    """Record a single fetch."""
    polls_total.labels(kind=kind).inc()


def record_poll_outcome(kind: str, state: PollState, elapsed: float) -> None:
    """Record a terminal poll outcome and how long it took."""
    poll_outcomes_total.labels(kind=kind, state=str(state)).inc()
    poll_wait_seconds.labels(kind=kind, state=str(state)).observe(elapsed)


def record_verification(status: VerificationStatus) -> None:
    """Record a cross-system comparison result."""
    verifications_total.labels(status=str(status)).inc()


def init_system_info(version: str) -> None:
    """
    Initialize system information metric.

    Args:
        version: Application version
    """
    system_info.info({'version': version})
