"""
Host Poller - the execution-host half of the bridge

Each tick dequeues at most one task, snapshots the document, runs the code
synchronously, snapshots again and reports the result with the paragraph
diff. Execution blocks the host; tasks are serialised here, not in the
relay. Only one poller may run against a relay.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from models.diff import DocumentSnapshot

from .bridge_client import DEFAULT_SUCCESS_MESSAGE, BridgeClient
from .diff_generator import DiffGenerator

logger = logging.getLogger(__name__)

Executor = Callable[[str], Any]
Snapshotter = Callable[[], DocumentSnapshot | None]


class HostPoller:
    def __init__(
        self,
        client: BridgeClient,
        executor: Executor,
        snapshotter: Snapshotter,
        diff_generator: DiffGenerator | None = None,
    ):
        self.client = client
        self.executor = executor
        self.snapshotter = snapshotter
        self.diff_generator = diff_generator or DiffGenerator()

    async def poll_once(self) -> bool:
        """Run one pending task if there is one; returns whether a task ran"""
        task = await self.client.fetch_pending()
        if task is None:
            return False

        before = self.snapshotter()
        try:
            value = self.executor(task.code)
        except Exception as e:
            logger.warning("Task %s raised: %s", task.id, e)
            await self.client.report(task.id, error=str(e) or type(e).__name__)
            return True

        after = self.snapshotter()
        diff = self.diff_generator.generate_diff(before, after)
        result = DEFAULT_SUCCESS_MESSAGE if value is None else str(value)
        await self.client.report(task.id, result=result, diff=diff)
        return True

    async def run(self, interval: float = 1.0, stop: asyncio.Event | None = None) -> None:
        """Poll until ``stop`` is set"""
        stop = stop or asyncio.Event()
        while not stop.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                logger.error("Poll tick failed: %s", e)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
