"""Generic wait-for-condition engine with deadline and cancellation."""
import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar
from converge.core.enums import BackoffPolicy, PollState
from converge.core.exceptions import (
    NotYetReadyError,
    ObjectGoneError,
    ObjectNotFoundError,
    WaitTimeoutError,
)
from converge.models.workload import Identity, PollOutcome, WorkloadSnapshot
from converge.observability.metrics import record_poll, record_poll_outcome
from converge.services.backoff import BackoffService
from converge.services.conditions import Condition
from converge.services.state_machine import PollStateMachine

logger = logging.getLogger(__name__)

Fetch = Callable[[Identity], Awaitable[WorkloadSnapshot]]
T = TypeVar("T")

_TIMED_OUT = object()
_CANCELLED = object()


class Poller:
    """
    Repeatedly fetches an object and applies a condition to it.

    Resolves to SATISFIED, FAILED or TIMED_OUT. The first fetch is
    immediate; later fetches follow the backoff policy. Every fetch and
    every pause is bounded by the remaining deadline, so no outcome is
    returned after the deadline and no fetch follows a terminal outcome.
    """

    def __init__(
        self,
        fetch: Fetch,
        kind: str = "object",
        interval: float = 1.0,
        max_interval: float = 10.0,
        backoff_policy: BackoffPolicy = BackoffPolicy.FIXED,
        timeout: float = 600.0,
        backoff: Optional[BackoffService] = None,
    ):
        """
        Initialize poller.

        Args:
            fetch: Coroutine function reading a snapshot by identity
            kind: Object kind, used for logs and metrics
            interval: Base interval between polls in seconds
            max_interval: Cap for growing intervals in seconds
            backoff_policy: Interval policy between polls
            timeout: Default deadline for a wait in seconds
            backoff: Optional backoff service override
        """
        self._fetch = fetch
        self.kind = kind
        self.interval = interval
        self.max_interval = max_interval
        self.backoff_policy = backoff_policy
        self.timeout = timeout
        self._backoff = backoff or BackoffService()

    @classmethod
    def for_kind(cls, client: Any, kind: str, **kwargs) -> "Poller":
        """
        Build a poller reading objects of one kind from an orchestration client.

        Args:
            client: Object exposing ``async get(kind, identity)``
            kind: Object kind to read
            **kwargs: Remaining Poller arguments

        Returns:
            Poller: Configured poller
        """
        return cls(functools.partial(client.get, kind), kind=kind, **kwargs)

    async def wait(
        self,
        identity: Identity,
        condition: Condition,
        description: Optional[str] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PollOutcome:
        """
        Wait until the condition holds for the object, fails, or time runs out.

        Args:
            identity: Object to fetch
            condition: Condition evaluated on every snapshot
            description: Description used in diagnostics (defaults to the condition's)
            timeout: Deadline in seconds (defaults to the poller's)
            cancel_event: Optional event that aborts the wait when set

        Returns:
            PollOutcome: Terminal outcome with the last observed snapshot

        Raises:
            TransportError: If the orchestration API call itself failed
            asyncio.CancelledError: If the awaiting task is cancelled
        """
        loop = asyncio.get_running_loop()
        timeout = self.timeout if timeout is None else timeout
        description = description or condition.description
        started = loop.time()
        deadline = started + timeout

        state = PollState.PENDING
        attempts = 0
        snapshot: Optional[WorkloadSnapshot] = None
        reason = ""

        def finish(new_state: PollState, outcome_reason: str, cancelled: bool = False) -> PollOutcome:
            final = PollStateMachine.validate_transition(state, new_state)
            elapsed = loop.time() - started
            record_poll_outcome(self.kind, final, elapsed)
            message = (
                f"{self.kind} {identity} {final} waiting for {description} "
                f"after {attempts} polls in {elapsed:.2f}s: {outcome_reason}"
            )
            if final == PollState.SATISFIED:
                logger.info(message)
            else:
                logger.warning(message)
            return PollOutcome(
                state=final,
                identity=identity,
                description=description,
                reason=outcome_reason,
                snapshot=snapshot,
                attempts=attempts,
                elapsed=elapsed,
                timeout=timeout,
                cancelled=cancelled,
            )

        while True:
            if cancel_event is not None and cancel_event.is_set():
                return finish(PollState.TIMED_OUT, "cancelled", cancelled=True)
            remaining = deadline - loop.time()
            if remaining <= 0:
                return finish(PollState.TIMED_OUT, reason or "deadline elapsed")

            attempts += 1
            record_poll(self.kind)
            try:
                fetched = await _race(
                    functools.partial(self._fetch, identity), remaining, cancel_event
                )
            except ObjectNotFoundError as e:
                if snapshot is not None:
                    return finish(PollState.FAILED, f"{identity} disappeared: {e}")
                fetched = None
                reason = str(e)
            except NotYetReadyError as e:
                fetched = None
                reason = str(e)
            except ObjectGoneError as e:
                return finish(PollState.FAILED, str(e))

            if fetched is _CANCELLED:
                return finish(PollState.TIMED_OUT, "cancelled", cancelled=True)
            if fetched is _TIMED_OUT:
                return finish(PollState.TIMED_OUT, reason or "deadline elapsed during fetch")

            if fetched is not None:
                snapshot = fetched
                try:
                    result = condition.evaluate(snapshot)
                except NotYetReadyError as e:
                    reason = str(e)
                else:
                    if result.satisfied:
                        return finish(PollState.SATISFIED, result.reason)
                    if result.failed:
                        return finish(PollState.FAILED, result.reason)
                    reason = result.reason

            state = PollStateMachine.validate_transition(state, PollState.PENDING)
            logger.debug(
                f"{self.kind} {identity} not yet {description} (poll {attempts}): {reason}"
            )

            delay = self._backoff.next_interval(
                attempts - 1, self.backoff_policy, self.interval, self.max_interval
            )
            remaining = deadline - loop.time()
            if remaining <= 0:
                return finish(PollState.TIMED_OUT, reason or "deadline elapsed")
            pause = min(delay, remaining)
            if await self._pause(pause, cancel_event):
                return finish(PollState.TIMED_OUT, "cancelled", cancelled=True)
            if pause >= remaining:
                # Slept through the deadline
                return finish(PollState.TIMED_OUT, reason or "deadline elapsed")

    async def _pause(self, delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep for delay seconds. Returns True if cancelled meanwhile."""
        if cancel_event is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


async def _race(
    operation: Callable[[], Awaitable[Any]],
    timeout: Optional[float],
    cancel_event: Optional[asyncio.Event],
):
    """Run an operation, racing it against a deadline and the cancel event."""
    if cancel_event is not None and cancel_event.is_set():
        return _CANCELLED

    operation_task = asyncio.ensure_future(operation())
    waiters = {operation_task}
    stop_task = None
    if cancel_event is not None:
        stop_task = asyncio.ensure_future(cancel_event.wait())
        waiters.add(stop_task)

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in waiters:
            if not task.done():
                task.cancel()
        await asyncio.gather(*waiters, return_exceptions=True)

    if operation_task in done:
        return operation_task.result()
    if stop_task is not None and stop_task in done:
        return _CANCELLED
    return _TIMED_OUT


async def run_cancellable(
    operation: Callable[[], Awaitable[T]],
    identity: Identity,
    description: str,
    cancel_event: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
) -> T:
    """
    Await a single orchestration call unless cancelled or out of time.

    Args:
        operation: Zero-argument coroutine function performing the call
        identity: Object the call concerns, used in diagnostics
        description: What the call does, used in diagnostics
        cancel_event: Optional event aborting the call when set
        timeout: Optional deadline for the call in seconds

    Returns:
        The operation's result

    Raises:
        WaitTimeoutError: If cancelled (``cancelled=True``) or out of time
    """
    result = await _race(operation, timeout, cancel_event)
    if result is _CANCELLED:
        logger.warning(f"{description} for {identity} cancelled")
        raise WaitTimeoutError(identity, description, timeout, cancelled=True)
    if result is _TIMED_OUT:
        logger.warning(f"{description} for {identity} timed out after {timeout}s")
        raise WaitTimeoutError(identity, description, timeout)
    return result
