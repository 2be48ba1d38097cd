"""In-memory registry of run state, polled by run id."""

import asyncio
import logging
import threading
import uuid
from typing import Callable, Dict, Optional, TypeVar

from app.models.run import Run

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RunNotFoundError(KeyError):
    """Raised when mutating a run id that is unknown or already evicted."""


class RunRegistry:
    """Process-wide map of run id to run state.

    Each run has a single writer (its executor task) and any number of
    pollers. Pollers reach the registry from the FastAPI threadpool, so
    every access to the map goes through the lock.
    """

    def __init__(self, ttl: float = 600):
        """Initialize registry.

        Args:
            ttl: Seconds a finished run stays readable before eviction
        """
        self.ttl = ttl
        self._runs: Dict[str, Run] = {}
        self._evictions: Dict[str, asyncio.TimerHandle] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)

    def __contains__(self, run_id: str) -> bool:
        with self._lock:
            return run_id in self._runs

    def create(self, total_steps: int, test_name: str = "Test") -> Run:
        """Insert a new running entry under a fresh id."""
        with self._lock:
            run_id = uuid.uuid4().hex
            while run_id in self._runs:
                run_id = uuid.uuid4().hex

            run = Run(id=run_id, test_name=test_name, total_steps=total_steps)
            self._runs[run_id] = run

        logger.info(f"Created run {run_id} ({total_steps} steps)")
        return run

    def get(self, run_id: str) -> Optional[Run]:
        """Return a snapshot of the run, or None if unknown or evicted."""
        with self._lock:
            run = self._runs.get(run_id)
            if run is None:
                return None
            return run.model_copy(deep=True)

    def mutate(self, run_id: str, fn: Callable[[Run], T]) -> T:
        """Apply ``fn`` to the live run entry and return its result.

        Only the executor that owns the run may call this.
        """
        with self._lock:
            run = self._runs.get(run_id)
            if run is None:
                raise RunNotFoundError(run_id)
            return fn(run)

    def schedule_eviction(self, run_id: str, delay: Optional[float] = None):
        """Remove the run after ``delay`` seconds, polled or not.

        Must be called from the event loop that should own the timer.
        """
        delay = self.ttl if delay is None else delay
        loop = asyncio.get_running_loop()

        with self._lock:
            previous = self._evictions.pop(run_id, None)
            if previous is not None:
                previous.cancel()
            self._evictions[run_id] = loop.call_later(delay, self.evict, run_id)

        logger.debug(f"Run {run_id} scheduled for eviction in {delay}s")

    def evict(self, run_id: str) -> bool:
        """Drop a run immediately. Returns False if it was already gone."""
        with self._lock:
            handle = self._evictions.pop(run_id, None)
            if handle is not None:
                handle.cancel()
            removed = self._runs.pop(run_id, None) is not None

        if removed:
            logger.info(f"Evicted run {run_id}")
        return removed

    def close(self):
        """Cancel pending eviction timers."""
        with self._lock:
            for handle in self._evictions.values():
                handle.cancel()
            self._evictions.clear()
