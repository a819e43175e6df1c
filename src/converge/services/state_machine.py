"""Poll state machine logic for managing valid poll state transitions."""
from typing import Set, Dict
from converge.core.enums import PollState
from converge.core.exceptions import InvalidStateTransitionError


class PollStateMachine:
    """
    Defines valid state transitions for a single wait.

    State Diagram:
        PENDING --(not yet satisfied, time remains)--> PENDING
        PENDING --(condition satisfied)--> SATISFIED
        PENDING --(terminal failure)--> FAILED
        PENDING --(deadline elapsed)--> TIMED_OUT
    """

    TRANSITIONS: Dict[PollState, Set[PollState]] = {
        PollState.PENDING: {
            PollState.PENDING,
            PollState.SATISFIED,
            PollState.FAILED,
            PollState.TIMED_OUT,
        },
        PollState.SATISFIED: set(),  # Terminal state
        PollState.FAILED: set(),  # Terminal state
        PollState.TIMED_OUT: set(),  # Terminal state
    }

    TERMINAL_STATES = {PollState.SATISFIED, PollState.FAILED, PollState.TIMED_OUT}

    @classmethod
    def can_transition(cls, from_state: PollState, to_state: PollState) -> bool:
        """
        Check if transition from from_state to to_state is valid.

        Args:
            from_state: Current poll state
            to_state: Desired poll state

        Returns:
            bool: True if transition is valid, False otherwise
        """
        return to_state in cls.TRANSITIONS.get(from_state, set())

    @classmethod
    def validate_transition(cls, from_state: PollState, to_state: PollState) -> PollState:
        """
        Validate state transition and raise exception if invalid.

        Args:
            from_state: Current poll state
            to_state: Desired poll state

        Returns:
            PollState: The new state

        Raises:
            InvalidStateTransitionError: If transition is not valid
        """
        if not cls.can_transition(from_state, to_state):
            raise InvalidStateTransitionError(
                f"Invalid state transition: {from_state} -> {to_state}"
            )
        return to_state

    @classmethod
    def is_terminal(cls, state: PollState) -> bool:
        """
        Check if state is terminal (polling ends, never resumes).

        Args:
            state: Poll state to check

        Returns:
            bool: True if terminal state, False otherwise
        """
        return state in cls.TERMINAL_STATES

    @classmethod
    def get_valid_transitions(cls, from_state: PollState) -> Set[PollState]:
        """Get all valid next states from current state."""
        return cls.TRANSITIONS.get(from_state, set())
