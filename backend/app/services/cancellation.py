from __future__ import annotations

import logging
from threading import Event, Lock

from app.core.exceptions import RunAlreadyActiveError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag polled at loop boundaries.

    Backed by an ``Event`` because the HTTP layer may set it from another
    worker thread while a run is in progress.
    """

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class RunRegistry:
    def __init__(self) -> None:
        self._tokens: dict[str, CancellationToken] = {}
        self._lock = Lock()

    def register(self, run_id: str) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            if run_id in self._tokens:
                raise RunAlreadyActiveError(run_id)
            self._tokens[run_id] = token
        return token

    def cancel(self, run_id: str) -> bool:
        with self._lock:
            token = self._tokens.get(run_id)
        if token is None:
            return False
        token.cancel()
        logger.info("RUN CANCEL REQUESTED | run_id=%s", run_id)
        return True

    def release(self, run_id: str) -> None:
        with self._lock:
            self._tokens.pop(run_id, None)

    def active_runs(self) -> list[str]:
        with self._lock:
            return sorted(self._tokens)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()


run_registry = RunRegistry()
