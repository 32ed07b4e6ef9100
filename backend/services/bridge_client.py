"""
Bridge Client - HTTP side of the code execution bridge

Used by submitters (``execute``: submit, then poll for the result within a
wait timeout) and by a Python execution host (``fetch_pending`` and
``report``). The wait timeout must stay below the relay's result TTL, or an
evicted result reads as "not ready".
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import aiohttp

from models.bridge import CodeTask
from models.diff import DiffResult

from .errors import CodeExecutionError, ExecutionTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.3
DEFAULT_TIMEOUT = 30.0
DEFAULT_SUCCESS_MESSAGE = "Executed successfully"


@dataclass
class ExecutionOutcome:
    task_id: str
    result: str
    diff: DiffResult | None = None


class BridgeClient:
    """aiohttp client for the relay's bridge endpoints"""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3003",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        request_timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.request_timeout = request_timeout

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "BridgeClient":
        """Build a client for the relay described by a ConfigManager config"""
        server = config.get("server", {})
        bridge = config.get("bridge", {})
        host = server.get("host", "127.0.0.1")
        port = server.get("port", 3003)
        return cls(
            base_url=f"http://{host}:{port}",
            poll_interval=float(bridge.get("clientPollSeconds", DEFAULT_POLL_INTERVAL)),
            timeout=float(bridge.get("clientTimeoutSeconds", DEFAULT_TIMEOUT)),
        )

    @asynccontextmanager
    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None):
        """Context manager for one HTTP call with automatic session cleanup"""
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(method, f"{self.base_url}{path}", json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise aiohttp.ClientResponseError(
                        response.request_info,
                        response.history,
                        status=response.status,
                        message=error_text,
                    )
                yield response

    async def _get_json(self, path: str) -> dict[str, Any]:
        async with self._request("GET", path) as response:
            return await response.json()

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with self._request("POST", path, payload) as response:
            return await response.json()

    # ========== Submitter side ==========

    async def submit(self, code: str) -> str:
        data = await self._post_json("/execute-code", {"code": code})
        return data["id"]

    async def fetch_result(self, task_id: str) -> dict[str, Any]:
        return await self._get_json(f"/code-result/{task_id}")

    async def wait_for_result(self, task_id: str) -> ExecutionOutcome:
        """Poll until the host reports, raising ExecutionTimeoutError after the timeout"""
        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            await asyncio.sleep(self.poll_interval)
            try:
                data = await self.fetch_result(task_id)
            except aiohttp.ClientResponseError as e:
                logger.debug("Result poll for %s failed: %s", task_id, e)
                continue
            if not data.get("ready"):
                continue
            if data.get("error"):
                raise CodeExecutionError(data["error"], task_id=task_id)
            diff = data.get("diff")
            return ExecutionOutcome(
                task_id=task_id,
                result=data.get("result") or DEFAULT_SUCCESS_MESSAGE,
                diff=DiffResult.model_validate(diff) if diff else None,
            )
        raise ExecutionTimeoutError(task_id, self.timeout)

    async def execute(self, code: str) -> ExecutionOutcome:
        """Submit code and wait for the host's result"""
        task_id = await self.submit(code)
        logger.info("Submitted %s, waiting up to %gs", task_id, self.timeout)
        return await self.wait_for_result(task_id)

    # ========== Host side ==========

    async def fetch_pending(self) -> CodeTask | None:
        data = await self._get_json("/pending-code")
        if not data.get("pending"):
            return None
        return CodeTask.model_validate(data)

    async def report(
        self,
        task_id: str,
        result: str | None = None,
        error: str | None = None,
        diff: DiffResult | None = None,
    ) -> None:
        payload: dict[str, Any] = {"id": task_id}
        if result is not None:
            payload["result"] = result
        if error is not None:
            payload["error"] = error
        if diff is not None:
            payload["diff"] = diff.model_dump(by_alias=True)
        await self._post_json("/code-result", payload)
