"""FuriosaClient — main entry point for compiling and preparing models."""

from __future__ import annotations

import logging
from typing import Callable

import httpx

from . import __version__
from .config import Credentials, resolve_credentials
from .exceptions import ApiError
from .models import (
    CalibrateRequest,
    CompileRequest,
    CompileTask,
    OptimizeRequest,
    QuantizeRequest,
    VersionInfo,
)
from .tasks import (
    COMPILER_TASKS_PATH,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    UNSET,
    CancelEvent,
    CompileTaskHandle,
    decode_task,
)
from .transport import USER_AGENT, Transport, decode_bytes, decode_json

logger = logging.getLogger(__name__)

VERSION_PATH = "api/v1/version"
DSS_OPTIMIZE_PATH = "api/v1/dss/optimize"
DSS_CALIBRATION_MODEL_PATH = "api/v1/dss/build-calibration-model"
DSS_QUANTIZE_PATH = "api/v1/dss/quantize"


class FuriosaClient:
    """Async client for the FuriosaAI compiler and DSS APIs.

    Usage::

        client = FuriosaClient()   # credentials from env or ~/.furiosa

        request = CompileRequest(target_npu_spec, model_bytes)
        binary = await client.compile(request)

    Args:
        credentials: Explicit key pair and endpoint. Resolved with
            :func:`resolve_credentials` when omitted.
        sdk_version: Sent as ``X-FuriosaAI-SDK-Version``.
        timeout: Per-request HTTP timeout in seconds.
        poll_interval: Delay between task status fetches.
        poll_timeout: Default client-side limit on polling a task, in
            seconds. ``None`` polls until the server reports a terminal phase.
        retries: Extra attempts per HTTP call on transport failure.
        retry_backoff: Initial retry delay in seconds, doubled per retry.
        http_transport: Custom ``httpx`` transport (tests, proxies).

    Raises:
        NoCredentials: No key pair in the environment or dotfiles.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        sdk_version: str = __version__,
        timeout: float = 30.0,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float | None = DEFAULT_POLL_TIMEOUT,
        retries: int = 0,
        retry_backoff: float = 0.5,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if credentials is None:
            credentials = resolve_credentials()

        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self._transport = Transport(
            credentials,
            user_agent=USER_AGENT,
            sdk_version=sdk_version,
            timeout=timeout,
            retries=retries,
            retry_backoff=retry_backoff,
            http_transport=http_transport,
        )
        logger.info("Connecting API Endpoint: %s", credentials.endpoint)

    def __repr__(self) -> str:
        return f"FuriosaClient(endpoint={self.endpoint!r})"

    @property
    def endpoint(self) -> str:
        return self._transport.endpoint

    def _handle(self, task: CompileTask) -> CompileTaskHandle:
        return CompileTaskHandle(
            task,
            self._transport,
            poll_interval=self.poll_interval,
            poll_timeout=self.poll_timeout,
        )

    # -- compiler -------------------------------------------------------------

    async def submit_compile(self, request: CompileRequest) -> CompileTaskHandle:
        """Create a compile task and return a handle to it without waiting.

        Raises:
            ApiError: The server rejected the request; no task was created.
        """
        async with self._transport.session() as session:
            resp = await self._transport.post_multipart(
                session, COMPILER_TASKS_PATH, request.to_form(),
            )
            task = decode_task(resp, "fail to compile")

        logger.info("task_submitted: %s filename=%s target_ir=%s",
                    task.task_id, request.filename, request.target_ir.value)
        return self._handle(task)

    async def task(self, task_id: str) -> CompileTaskHandle:
        """Re-attach to an existing compile task by id."""
        async with self._transport.session() as session:
            resp = await self._transport.get(session, f"{COMPILER_TASKS_PATH}/{task_id}")
            task = decode_task(resp, f"fail to get task {task_id}")
        return self._handle(task)

    async def compile(
        self,
        request: CompileRequest,
        *,
        timeout: float | None = UNSET,
        cancel_event: CancelEvent | None = None,
        on_status: Callable[[CompileTask], None] | None = None,
    ) -> bytes:
        """Submit ``request``, poll until done and return the compiled binary.

        See :meth:`CompileTaskHandle.wait` for ``timeout``, ``cancel_event``
        and ``on_status``.

        Raises:
            CompilationFailed: The task failed; the message is the compiler log.
            ApiError: An HTTP call failed or returned an error.
        """
        handle = await self.submit_compile(request)
        return await handle.wait(
            timeout=timeout, cancel_event=cancel_event, on_status=on_status,
        )

    # -- dss ------------------------------------------------------------------

    async def optimize(self, request: OptimizeRequest) -> bytes:
        """Return the optimized ONNX model."""
        return await self._post_for_bytes(
            DSS_OPTIMIZE_PATH, request, "fail to fetch the optimized onnx",
        )

    async def build_calibration_model(self, request: CalibrateRequest) -> bytes:
        """Return the calibration model for ``request.input_tensors``."""
        return await self._post_for_bytes(
            DSS_CALIBRATION_MODEL_PATH, request, "fail to fetch the calibrated onnx",
        )

    async def quantize(self, request: QuantizeRequest) -> bytes:
        """Return the model quantized with ``request.dynamic_ranges``."""
        return await self._post_for_bytes(
            DSS_QUANTIZE_PATH, request, "fail to fetch the quantized onnx",
        )

    async def server_version(self) -> VersionInfo:
        async with self._transport.session() as session:
            resp = await self._transport.get(session, VERSION_PATH)
            data = decode_json(resp, "fail to get the server version")
        try:
            return VersionInfo.from_response(data)
        except (KeyError, TypeError) as e:
            raise ApiError(f"fail to get the server version: {e!r}") from e

    async def _post_for_bytes(
        self,
        path: str,
        request: OptimizeRequest | CalibrateRequest | QuantizeRequest,
        context: str,
    ) -> bytes:
        async with self._transport.session() as session:
            resp = await self._transport.post_multipart(session, path, request.to_form())
            return decode_bytes(resp, context)
