"""Blocking facade over the async :class:`FuriosaClient`.

Usage::

    from furiosa_client.blocking import BlockingFuriosaClient

    with BlockingFuriosaClient() as client:
        binary = client.compile(CompileRequest(target_npu_spec, model_bytes))

Each instance owns a private event loop and runs every call to completion
on it, so polling behaves exactly as in the async client. Do not call it
from inside a running event loop; use :class:`FuriosaClient` there.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, TypeVar

from .FuriosaClient import FuriosaClient
from .models import (
    CalibrateRequest,
    CompileRequest,
    CompileTask,
    OptimizeRequest,
    QuantizeRequest,
    VersionInfo,
)
from .tasks import UNSET, CancelEvent, CompileTaskHandle

T = TypeVar("T")


class BlockingCompileTaskHandle:
    """Blocking counterpart of :class:`CompileTaskHandle`."""

    def __init__(self, handle: CompileTaskHandle, run: Callable[[Coroutine[Any, Any, Any]], Any]) -> None:
        self._handle = handle
        self._run = run

    def __repr__(self) -> str:
        return f"Blocking{self._handle!r}"

    @property
    def task_id(self) -> str:
        return self._handle.task_id

    @property
    def task(self) -> CompileTask:
        return self._handle.task

    def done(self) -> bool:
        return self._handle.done()

    def wait(
        self,
        *,
        timeout: float | None = UNSET,
        cancel_event: CancelEvent | None = None,
        on_status: Callable[[CompileTask], None] | None = None,
    ) -> bytes:
        return self._run(self._handle.wait(
            timeout=timeout, cancel_event=cancel_event, on_status=on_status,
        ))

    def refresh(self) -> CompileTask:
        return self._run(self._handle.refresh())

    def artifact(self) -> bytes:
        return self._run(self._handle.artifact())

    def logs(self) -> str:
        return self._run(self._handle.logs())


class BlockingFuriosaClient:
    """Synchronous client. Accepts the same arguments as :class:`FuriosaClient`."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._inner = FuriosaClient(*args, **kwargs)
        self._loop = asyncio.new_event_loop()

    def __repr__(self) -> str:
        return f"BlockingFuriosaClient(endpoint={self.endpoint!r})"

    def __enter__(self) -> BlockingFuriosaClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def endpoint(self) -> str:
        return self._inner.endpoint

    def close(self) -> None:
        if not self._loop.is_closed():
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        if self._loop.is_closed():
            coro.close()
            raise RuntimeError("BlockingFuriosaClient is closed")
        return self._loop.run_until_complete(coro)

    def submit_compile(self, request: CompileRequest) -> BlockingCompileTaskHandle:
        return BlockingCompileTaskHandle(self._run(self._inner.submit_compile(request)), self._run)

    def task(self, task_id: str) -> BlockingCompileTaskHandle:
        return BlockingCompileTaskHandle(self._run(self._inner.task(task_id)), self._run)

    def compile(
        self,
        request: CompileRequest,
        *,
        timeout: float | None = UNSET,
        cancel_event: CancelEvent | None = None,
        on_status: Callable[[CompileTask], None] | None = None,
    ) -> bytes:
        return self._run(self._inner.compile(
            request, timeout=timeout, cancel_event=cancel_event, on_status=on_status,
        ))

    def optimize(self, request: OptimizeRequest) -> bytes:
        return self._run(self._inner.optimize(request))

    def build_calibration_model(self, request: CalibrateRequest) -> bytes:
        return self._run(self._inner.build_calibration_model(request))

    def quantize(self, request: QuantizeRequest) -> bytes:
        return self._run(self._inner.quantize(request))

    def server_version(self) -> VersionInfo:
        return self._run(self._inner.server_version())
