"""furiosa_client — client library for the FuriosaAI compiler API.

Usage::

    from furiosa_client import CompileRequest, FuriosaClient

    client = FuriosaClient()   # FURIOSA_ACCESS_KEY_ID / FURIOSA_SECRET_ACCESS_KEY

    async def main():
        request = CompileRequest(target_npu_spec, model_bytes)
        handle = await client.submit_compile(request)
        binary = await handle
"""

import logging as _logging
import os as _os

__version__ = "0.2.1"

if _os.getenv("FURIOSA_CLIENT_DEBUG", "").lower() in ("1", "true", "yes"):
    _handler = _logging.StreamHandler()
    _handler.setFormatter(_logging.Formatter("%(name)s: %(message)s"))
    _log = _logging.getLogger("furiosa_client")
    _log.setLevel(_logging.DEBUG)
    if not _log.handlers:
        _log.addHandler(_handler)

from .blocking import BlockingCompileTaskHandle, BlockingFuriosaClient
from .config import (
    FURIOSA_API_ENDPOINT_ENV,
    Credentials,
    get_endpoint_from_env,
    normalize_endpoint,
    resolve_credentials,
)
from .exceptions import (
    ApiError,
    AuthError,
    ClientIOError,
    CompilationFailed,
    ConfigEnvVarError,
    ConfigParseError,
    FuriosaClientError,
    InvalidTargetIr,
    MalformedErrorResponse,
    NoCredentials,
    TaskCancelled,
    TaskTimeout,
)
from .FuriosaClient import FuriosaClient
from .models import (
    CalibrateRequest,
    CompileRequest,
    CompileTask,
    OptimizeRequest,
    QuantizeRequest,
    TargetIr,
    TaskPhase,
    VersionInfo,
)
from .tasks import CompileTaskHandle

__all__ = [
    "FuriosaClient",
    "BlockingFuriosaClient",
    "CompileTaskHandle",
    "BlockingCompileTaskHandle",
    "Credentials",
    "resolve_credentials",
    "get_endpoint_from_env",
    "normalize_endpoint",
    "FURIOSA_API_ENDPOINT_ENV",
    "CompileRequest",
    "OptimizeRequest",
    "CalibrateRequest",
    "QuantizeRequest",
    "CompileTask",
    "TaskPhase",
    "TargetIr",
    "VersionInfo",
    "FuriosaClientError",
    "ClientIOError",
    "ConfigParseError",
    "ConfigEnvVarError",
    "NoCredentials",
    "InvalidTargetIr",
    "ApiError",
    "AuthError",
    "MalformedErrorResponse",
    "CompilationFailed",
    "TaskTimeout",
    "TaskCancelled",
]
