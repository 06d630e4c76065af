"""Shared fixtures: credentials, isolated environment and a scripted API server."""

from __future__ import annotations

import os
from typing import Any, Callable
from unittest.mock import patch

import httpx
import pytest

from furiosa_client import Credentials, FuriosaClient
from furiosa_client.config import ACCESS_KEY_ID_ENV, FURIOSA_API_ENDPOINT_ENV, SECRET_ACCESS_KEY_ENV

ENDPOINT = "https://api.test"


def task_json(phase: str, task_id: str = "task-1", **extra: Any) -> dict[str, Any]:
    data = {
        "version": 1,
        "task_id": task_id,
        "phase": phase,
        "submit_time": 1700000000,
        "start_time": None,
        "finish_time": None,
        "progress": 0.0,
        "error_message": None,
    }
    data.update(extra)
    return data


def error_json(message: str, error_code: str = "BAD_REQUEST", trace_id: str | None = None) -> dict:
    data = {"error_code": error_code, "message": message}
    if trace_id is not None:
        data["trace_id"] = trace_id
    return data


class ScriptedServer:
    """httpx.MockTransport handler replaying a fixed compile-task script.

    ``statuses`` is consumed one entry per status GET; the last entry
    repeats once the script is exhausted.
    """

    def __init__(
        self,
        *,
        submit: dict | None = None,
        submit_status: int = 200,
        statuses: list[dict] | None = None,
        artifact: bytes = b"\x00ENF-BINARY",
        logs: bytes = b"",
        dss: bytes = b"onnx-bytes",
    ) -> None:
        self.submit = submit if submit is not None else task_json("Pending")
        self.submit_status = submit_status
        self.statuses = list(statuses or [])
        self.artifact = artifact
        self.logs = logs
        self.dss = dss
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/v1alpha1/tasks"):
            return httpx.Response(self.submit_status, json=self.submit)
        if request.method == "POST" and "/dss/" in path:
            return httpx.Response(200, content=self.dss)
        if path.endswith("/version"):
            return httpx.Response(200, json={"version": "0.2.0", "git_hash": "abc1234"})
        if path.endswith("/artifacts/output.enf"):
            return httpx.Response(200, content=self.artifact)
        if path.endswith("/logs"):
            return httpx.Response(200, content=self.logs)
        if request.method == "GET" and "/tasks/" in path:
            data = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return httpx.Response(200, json=data)

        return httpx.Response(404, json=error_json(f"no route for {path}", "NOT_FOUND"))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def paths(self, method: str | None = None) -> list[str]:
        return [r.url.path for r in self.requests if method is None or r.method == method]

    def status_gets(self) -> int:
        return sum(1 for p in self.paths("GET") if p.rstrip("/").split("/")[-2] == "tasks")

    def artifact_gets(self) -> int:
        return sum(1 for p in self.paths("GET") if p.endswith("/artifacts/output.enf"))

    def log_gets(self) -> int:
        return sum(1 for p in self.paths("GET") if p.endswith("/logs"))


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_key_id="key-id", secret_access_key="s3cret", endpoint=ENDPOINT)


@pytest.fixture
def make_client(credentials) -> Callable[..., FuriosaClient]:
    def _make(server: ScriptedServer, **kwargs: Any) -> FuriosaClient:
        kwargs.setdefault("poll_interval", 0.0)
        return FuriosaClient(credentials, http_transport=server.transport, **kwargs)
    return _make


@pytest.fixture
def clean_env(tmp_path):
    """No credential variables, HOME pointing at an empty directory.

    ``patch.dict`` restores ``os.environ`` afterwards, including keys that
    dotenv loading added during the test.
    """
    with patch.dict(os.environ):
        for name in (ACCESS_KEY_ID_ENV, SECRET_ACCESS_KEY_ENV, FURIOSA_API_ENDPOINT_ENV):
            os.environ.pop(name, None)
        os.environ["HOME"] = str(tmp_path)
        yield tmp_path
