"""
Metrics Core - Completion Token
Write-once success/failure signal for asynchronous export operations
"""

import logging
import threading
from enum import Enum
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)


class TokenState(Enum):
    """Lifecycle of a completion token"""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CompletionToken:
    """Eventual result of an export, flush, or shutdown.

    The token moves from PENDING to SUCCEEDED or FAILED exactly once; the first
    of `succeed()` / `fail()` wins and later calls are ignored. Callbacks
    registered with `when_complete` run once each, on the thread that
    completes the token or immediately when it is already complete.
    """

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._state = TokenState.PENDING
        self._callbacks: List[Callable[['CompletionToken'], None]] = []

    @classmethod
    def succeeded(cls) -> 'CompletionToken':
        return cls().succeed()

    @classmethod
    def failed(cls) -> 'CompletionToken':
        return cls().fail()

    @classmethod
    def of_all(cls, tokens: Iterable['CompletionToken']) -> 'CompletionToken':
        """Token that succeeds once every token succeeded and fails if any failed"""

        tokens = list(tokens)
        result = cls()
        if not tokens:
            return result.succeed()

        remaining = len(tokens)
        any_failed = False
        lock = threading.Lock()

        def _on_done(token: 'CompletionToken'):
            nonlocal remaining, any_failed
            with lock:
                if not token.is_success():
                    any_failed = True
                remaining -= 1
                finished = remaining == 0
            if finished:
                if any_failed:
                    result.fail()
                else:
                    result.succeed()

        for token in tokens:
            token.when_complete(_on_done)

        return result

    def succeed(self) -> 'CompletionToken':
        """Mark the operation successful, unless already complete"""
        self._complete(TokenState.SUCCEEDED)
        return self

    def fail(self) -> 'CompletionToken':
        """Mark the operation failed, unless already complete"""
        self._complete(TokenState.FAILED)
        return self

    def _complete(self, state: TokenState):
        with self._condition:
            if self._state is not TokenState.PENDING:
                logger.debug(f"Ignoring {state.value} for token already {self._state.value}")
                return
            self._state = state
            callbacks, self._callbacks = self._callbacks, []
            self._condition.notify_all()

        for callback in callbacks:
            self._run_callback(callback)

    def _run_callback(self, callback: Callable[['CompletionToken'], None]):
        try:
            callback(self)
        except Exception:
            logger.exception(f"Completion callback {callback!r} raised")

    @property
    def state(self) -> TokenState:
        return self._state

    def is_done(self) -> bool:
        return self._state is not TokenState.PENDING

    def is_success(self) -> bool:
        return self._state is TokenState.SUCCEEDED

    def when_complete(self, callback: Callable[['CompletionToken'], None]) -> 'CompletionToken':
        """Run `callback(token)` once the token is complete"""

        with self._condition:
            if self._state is TokenState.PENDING:
                self._callbacks.append(callback)
                return self

        self._run_callback(callback)
        return self

    def join(self, timeout: Optional[float] = None) -> 'CompletionToken':
        """Block until complete or `timeout` seconds elapse; the token may still be pending"""

        with self._condition:
            self._condition.wait_for(lambda: self._state is not TokenState.PENDING, timeout=timeout)
        return self

    def __repr__(self):
        return f"CompletionToken(state={self._state.value})"
