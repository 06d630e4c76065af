"""CompileTaskHandle: polls a compile task to completion."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

import httpx

from .exceptions import ApiError, CompilationFailed, TaskCancelled, TaskTimeout
from .models import CompileTask, TaskPhase
from .transport import Transport, decode_bytes, decode_json

logger = logging.getLogger(__name__)

COMPILER_TASKS_PATH = "api/compiler/v1alpha1/tasks"
ARTIFACT_PATH = "artifacts/output.enf"
LOGS_PATH = "logs"

DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_POLL_TIMEOUT = 3600.0

# Default for ``timeout`` arguments: "use the handle's poll_timeout". ``None`` means no limit.
UNSET: Any = object()


class CancelEvent(Protocol):
    """Anything with ``is_set()``: ``asyncio.Event``, ``threading.Event``."""

    def is_set(self) -> bool: ...


def decode_task(resp: httpx.Response, context: str) -> CompileTask:
    data = decode_json(resp, context)
    try:
        return CompileTask.from_response(data)
    except (KeyError, ValueError, TypeError) as e:
        raise ApiError(f"{context}: malformed task: {e!r}", status_code=resp.status_code) from e


class CompileTaskHandle:
    """Async handle to a submitted compile task.

    Usage::

        handle = await client.submit_compile(request)   # POST, task_id assigned
        binary = await handle                            # poll until done

    ``wait()`` resolves to the compiled binary, or raises
    :class:`CompilationFailed` carrying the compiler log.
    """

    def __init__(
        self,
        task: CompileTask,
        transport: Transport,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float | None = DEFAULT_POLL_TIMEOUT,
    ) -> None:
        self._task = task
        self._transport = transport
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout

    def __repr__(self) -> str:
        return f"CompileTaskHandle(task_id={self.task_id!r}, phase={self._task.phase.value})"

    def __await__(self):
        """Allow ``binary = await handle``."""
        return self.wait().__await__()

    @property
    def task_id(self) -> str:
        return self._task.task_id

    @property
    def task(self) -> CompileTask:
        """Most recently fetched task state."""
        return self._task

    def done(self) -> bool:
        """Non-blocking check on the last fetched phase."""
        return self._task.phase.is_terminal

    def _task_path(self, sub: str = "") -> str:
        path = f"{COMPILER_TASKS_PATH}/{self.task_id}"
        return f"{path}/{sub}" if sub else path

    async def wait(
        self,
        *,
        timeout: float | None = UNSET,
        cancel_event: CancelEvent | None = None,
        on_status: Callable[[CompileTask], None] | None = None,
    ) -> bytes:
        """Poll until the task reaches a terminal phase, then resolve it.

        Only the phase reported by the server drives transitions; progress
        and elapsed time are never used to infer completion.

        Args:
            timeout: Client-side wall-clock timeout in seconds. Defaults to
                the handle's ``poll_timeout``. ``None`` polls indefinitely.
            cancel_event: Checked once per iteration, before each status GET.
            on_status: Called with every freshly fetched task.

        Returns:
            The compiled binary.

        Raises:
            CompilationFailed: The task ended in ``Failed``; the message is
                the compiler log.
            TaskTimeout: ``timeout`` elapsed before a terminal phase.
            TaskCancelled: ``cancel_event`` was set.
            ApiError: Any HTTP call failed.
        """
        if timeout is UNSET:
            timeout = self.poll_timeout

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        async with self._transport.session() as session:
            while not self._task.phase.is_terminal:
                delay = self.poll_interval
                if deadline is not None:
                    delay = max(0.0, min(delay, deadline - loop.time()))
                await asyncio.sleep(delay)

                if cancel_event is not None and cancel_event.is_set():
                    raise TaskCancelled(self.task_id)
                if deadline is not None and loop.time() >= deadline:
                    raise TaskTimeout(self.task_id, timeout)

                self._task = await self._fetch(session)
                logger.debug("task_status: %s phase=%s progress=%.2f",
                             self.task_id, self._task.phase.value, self._task.progress)
                if on_status is not None:
                    on_status(self._task)

            logger.info("task_finished: %s phase=%s", self.task_id, self._task.phase.value)

            if self._task.phase is TaskPhase.SUCCEEDED:
                return await self._fetch_artifact(session)

            if self._task.phase is TaskPhase.FAILED:
                log = await self._fetch_logs(session)
                raise CompilationFailed(
                    log, task_id=self.task_id, error_message=self._task.error_message,
                )

        raise AssertionError(f"unreachable task phase: {self._task.phase!r}")

    async def refresh(self) -> CompileTask:
        """Single poll: fetch and store the latest task state."""
        async with self._transport.session() as session:
            self._task = await self._fetch(session)
        return self._task

    async def artifact(self) -> bytes:
        """Fetch the compiled binary of a succeeded task."""
        async with self._transport.session() as session:
            return await self._fetch_artifact(session)

    async def logs(self) -> str:
        """Fetch the compiler log, decoded as UTF-8 with replacement."""
        async with self._transport.session() as session:
            return await self._fetch_logs(session)

    async def _fetch(self, session: httpx.AsyncClient) -> CompileTask:
        resp = await self._transport.get(session, self._task_path())
        return decode_task(resp, f"fail to get task {self.task_id}")

    async def _fetch_artifact(self, session: httpx.AsyncClient) -> bytes:
        resp = await self._transport.get(session, self._task_path(ARTIFACT_PATH))
        return decode_bytes(resp, "fail to fetch the compiled binary")

    async def _fetch_logs(self, session: httpx.AsyncClient) -> str:
        resp = await self._transport.get(session, self._task_path(LOGS_PATH))
        return decode_bytes(resp, "fail to fetch the compile log").decode("utf-8", errors="replace")
