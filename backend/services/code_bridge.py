"""
Code Execution Bridge - submit / poll / report / retrieve

The relay and the UI cannot call the execution host, and the host can only
make outbound requests. Four independent operations let the two sides
simulate a synchronous call:

    submit (push)  ->  poll_pending (host pull)
    report (host push)  ->  poll_result (pull)

Delivery is destructive and at-most-once: the poll that dequeues a task is
the only one that ever sees it. Results are kept for ``result_ttl`` seconds
after they are reported and then evicted whether or not anyone read them.

Every operation runs under one lock. Only a single host poller is supported.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from models.bridge import CodeResult, CodeTask
from models.diff import DiffResult

from .errors import DuplicateResultError, UnknownTaskError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_RESULT_TTL = 60.0


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class CodeExecutionBridge:
    """In-memory task queue and result table shared by the HTTP handlers"""

    def __init__(
        self,
        result_ttl: float = DEFAULT_RESULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.result_ttl = result_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._queue: deque[CodeTask] = deque()
        # id -> (expires_at, result)
        self._results: dict[str, tuple[float, CodeResult]] = {}
        # ids issued by submit and not yet reported
        self._outstanding: set[str] = set()

    def submit(self, code: str) -> str:
        """Queue code for the host and return its task id"""
        if not code or not code.strip():
            raise ValidationError("code must not be empty")

        with self._lock:
            task = CodeTask(
                id=f"exec-{next(self._counter)}-{_epoch_ms()}",
                code=code,
                submitted_at=_epoch_ms(),
            )
            self._queue.append(task)
            self._outstanding.add(task.id)
            depth = len(self._queue)

        logger.info("Queued %s (%d chars, queue depth %d)", task.id, len(code), depth)
        return task.id

    def poll_pending(self) -> CodeTask | None:
        """Dequeue the oldest task, if any"""
        with self._lock:
            if not self._queue:
                return None
            task = self._queue.popleft()

        logger.info("Delivered %s to host", task.id)
        return task

    def report_result(
        self,
        task_id: str,
        result: str | None = None,
        error: str | None = None,
        diff: DiffResult | None = None,
    ) -> CodeResult:
        """Store the host's outcome for a task; each id is written once"""
        if not task_id:
            raise ValidationError("id must not be empty")

        with self._lock:
            self._evict_expired()
            if task_id not in self._outstanding:
                if task_id in self._results:
                    raise DuplicateResultError(f"result for {task_id} already reported")
                raise UnknownTaskError(f"no outstanding task {task_id}")
            entry = CodeResult(
                id=task_id,
                result=result,
                error=error,
                diff=diff,
                completed_at=_epoch_ms(),
            )
            self._results[task_id] = (self._clock() + self.result_ttl, entry)
            self._outstanding.discard(task_id)

        if error is not None:
            logger.warning("Task %s failed on host: %s", task_id, error)
        else:
            logger.info("Task %s completed", task_id)
        return entry

    def poll_result(self, task_id: str) -> CodeResult | None:
        """Non-destructive lookup; None until reported and after eviction"""
        with self._lock:
            self._evict_expired()
            stored = self._results.get(task_id)
        return stored[1] if stored else None

    def pending_count(self) -> int:
        with self._lock:
            return len(self._queue)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._results.items() if expires_at <= now]
        for key in expired:
            del self._results[key]
        if expired:
            logger.debug("Evicted %d expired results", len(expired))
