"""State machine for the request lifecycle."""

from enum import Enum

from http_call.errors import HTTPCallError
from http_call.observability import get_logger


class RequestState(str, Enum):
    """State of a request during its lifecycle.

    - INITIAL: Constructed, nothing sent yet
    - SENT: Request issued, waiting for a response
    - PARSED: Response received (body buffered unless raw)
    - FAILED: Transport or HTTP failure
    - REDIRECTING: Following a location header
    - RETRYING: Backing off before reissuing after a transport failure
    - PAGINATING: Fetching the next continuation range
    - DONE: Successfully completed
    """

    INITIAL = "INITIAL"
    SENT = "SENT"
    PARSED = "PARSED"
    FAILED = "FAILED"
    REDIRECTING = "REDIRECTING"
    RETRYING = "RETRYING"
    PAGINATING = "PAGINATING"
    DONE = "DONE"


# Valid state transitions
_VALID_TRANSITIONS: dict[RequestState, set[RequestState]] = {
    RequestState.INITIAL: {RequestState.SENT},
    RequestState.SENT: {RequestState.PARSED, RequestState.FAILED},
    RequestState.PARSED: {
        RequestState.REDIRECTING,
        RequestState.PAGINATING,
        RequestState.DONE,
        RequestState.FAILED,
    },
    # A transport failure is either retried or final
    RequestState.FAILED: {RequestState.RETRYING},
    RequestState.REDIRECTING: {RequestState.SENT, RequestState.FAILED},
    RequestState.RETRYING: {RequestState.SENT},
    RequestState.PAGINATING: {RequestState.SENT},
    RequestState.DONE: set(),  # Terminal state
}


class RequestStateTransitionError(HTTPCallError):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        from_state: RequestState,
        to_state: RequestState,
    ) -> None:
        """Initialize the transition error.

        Args:
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal request state transition: {from_state.value} -> {to_state.value}"
        )


class RequestStateMachine:
    """Tracks and enforces state transitions of one request.

    Enforces valid transitions and logs all state changes.
    """

    def __init__(self, initial_state: RequestState = RequestState.INITIAL) -> None:
        self._state = initial_state
        self._log = get_logger(subcomponent="lifecycle")

    @property
    def state(self) -> RequestState:
        """Get the current state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state has no outgoing transitions.

        FAILED is not terminal: a transport failure may still move to
        RETRYING. A request that raised stays in FAILED.
        """
        return not _VALID_TRANSITIONS.get(self._state)

    @property
    def is_failed(self) -> bool:
        """Check if the request is in FAILED state."""
        return self._state is RequestState.FAILED

    def can_transition_to(self, target: RequestState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: RequestState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            RequestStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise RequestStateTransitionError(
                from_state=self._state,
                to_state=target,
            )

        old_state = self._state
        self._state = target

        self._log.debug(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )

    def to_sent(self) -> None:
        """Transition to SENT state."""
        self.transition_to(RequestState.SENT)

    def to_parsed(self) -> None:
        """Transition to PARSED state."""
        self.transition_to(RequestState.PARSED)

    def to_failed(self) -> None:
        """Transition to FAILED state."""
        self.transition_to(RequestState.FAILED)

    def to_redirecting(self) -> None:
        """Transition to REDIRECTING state."""
        self.transition_to(RequestState.REDIRECTING)

    def to_retrying(self) -> None:
        """Transition to RETRYING state."""
        self.transition_to(RequestState.RETRYING)

    def to_paginating(self) -> None:
        """Transition to PAGINATING state."""
        self.transition_to(RequestState.PAGINATING)

    def to_done(self) -> None:
        """Transition to DONE state."""
        self.transition_to(RequestState.DONE)
