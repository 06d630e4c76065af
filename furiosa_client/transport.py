"""HTTP transport: auth headers, multipart uploads and response decoding."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

import httpx

from . import __version__
from .config import Credentials
from .exceptions import ApiError, AuthError, MalformedErrorResponse
from .models import ApiErrorBody, Form

logger = logging.getLogger(__name__)

ACCESS_KEY_ID_HTTP_HEADER = "X-FuriosaAI-Access-Key-ID"
SECRET_ACCESS_KEY_HTTP_HEADER = "X-FuriosaAI-Secret-Access-Key"
REQUEST_ID_HTTP_HEADER = "X-Request-Id"
SDK_VERSION_HTTP_HEADER = "X-FuriosaAI-SDK-Version"

USER_AGENT = f"FuriosaAI Python Client (ver.{__version__})"


def _check_response(resp: httpx.Response, context: str) -> None:
    """Raise the decoded API error for a non-2xx response.

    ``context`` prefixes the message, e.g. ``"fail to compile"``.
    """
    if resp.is_success:
        return

    try:
        body = ApiErrorBody.from_response(resp.json())
    except (ValueError, KeyError, TypeError) as e:
        raise MalformedErrorResponse(
            f"fail to get API response ({resp.status_code}): {e}",
            status_code=resp.status_code,
        ) from e

    exc_type = AuthError if resp.status_code in (401, 403) else ApiError
    raise exc_type(
        f"{context}: {body.message}",
        status_code=resp.status_code,
        error_code=body.error_code,
        trace_id=body.trace_id,
    )


def decode_json(resp: httpx.Response, context: str) -> Any:
    _check_response(resp, context)
    try:
        return resp.json()
    except ValueError as e:
        raise ApiError(f"{context}: invalid JSON body: {e}", status_code=resp.status_code) from e


def decode_bytes(resp: httpx.Response, context: str) -> bytes:
    _check_response(resp, context)
    return resp.content


class Transport:
    """Issues authenticated requests against one API endpoint.

    A transport is stateless between calls; each logical operation opens
    its own :meth:`session` and passes it to :meth:`get` / :meth:`post_multipart`.

    Args:
        credentials: Access key pair and endpoint.
        user_agent: ``User-Agent`` header value.
        sdk_version: Sent as ``X-FuriosaAI-SDK-Version``.
        timeout: Per-request timeout in seconds.
        retries: Extra attempts for a single request on transport failure
            (connection refused, read timeout, ...). HTTP error statuses
            are never retried.
        retry_backoff: Delay before the first retry; doubled on each retry.
        http_transport: Custom ``httpx`` transport, e.g. ``httpx.MockTransport``.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        user_agent: str = USER_AGENT,
        sdk_version: str = __version__,
        timeout: float = 30.0,
        retries: int = 0,
        retry_backoff: float = 0.5,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.credentials = credentials
        self.user_agent = user_agent
        self.sdk_version = sdk_version
        self.timeout = timeout
        self.retries = retries
        self.retry_backoff = retry_backoff
        self._http_transport = http_transport

    @property
    def endpoint(self) -> str:
        return self.credentials.endpoint

    def url(self, path: str) -> str:
        return f"{self.endpoint}/{path.lstrip('/')}"

    def session(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self._http_transport,
        )

    def headers(self) -> dict[str, str]:
        """Auth headers plus a fresh request id for server-side log correlation."""
        return {
            ACCESS_KEY_ID_HTTP_HEADER: self.credentials.access_key_id,
            SECRET_ACCESS_KEY_HTTP_HEADER: self.credentials.secret_access_key,
            REQUEST_ID_HTTP_HEADER: str(uuid.uuid4()),
            SDK_VERSION_HTTP_HEADER: self.sdk_version,
        }

    async def get(self, session: httpx.AsyncClient, path: str) -> httpx.Response:
        return await self._send(session, "GET", path)

    async def post_multipart(
        self, session: httpx.AsyncClient, path: str, form: Form,
    ) -> httpx.Response:
        data, files = form
        return await self._send(session, "POST", path, data=data, files=files)

    async def _send(
        self, session: httpx.AsyncClient, method: str, path: str, **kwargs: Any,
    ) -> httpx.Response:
        url = self.url(path)
        delay = self.retry_backoff

        for attempt in range(self.retries + 1):
            # Each attempt is its own HTTP call with its own request id.
            headers = self.headers()
            logger.debug(
                "%s %s request_id=%s attempt=%d",
                method, url, headers[REQUEST_ID_HTTP_HEADER], attempt + 1,
            )
            try:
                return await session.request(method, url, headers=headers, **kwargs)
            except httpx.TransportError as e:
                if attempt == self.retries:
                    raise ApiError(f"{method} {url} failed: {e}") from e
                logger.warning("request_retry: %s %s (%s), retrying in %.1fs",
                               method, url, e, delay)
                await asyncio.sleep(delay)
                delay *= 2
            except httpx.RequestError as e:
                # Undecodable body, redirect loop: retrying would not help.
                raise ApiError(f"{method} {url} failed: {e}") from e

        raise AssertionError("unreachable")
