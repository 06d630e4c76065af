"""Request builders, compile task and response models."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Sequence

from .exceptions import InvalidTargetIr

APPLICATION_OCTET_STREAM_MIME = "application/octet-stream"
DEFAULT_FILENAME = "noname"

TARGET_NPU_SPEC_PART_NAME = "target_npu_spec"
COMPILER_CONFIG_PART_NAME = "compiler_config"
TARGET_IR_PART_NAME = "target_ir"
SOURCE_PART_NAME = "source"
DSS_INPUT_TENSORS_PART_NAME = "input_tensors"
DSS_DYNAMIC_RANGES_PART_NAME = "dynamic_ranges"

Form = tuple[dict[str, str], dict[str, tuple[str, bytes, str]]]


class TargetIr(str, Enum):
    """Intermediate representation the compiler should stop at."""

    DFG = "dfg"
    LDFG = "ldfg"
    CDFG = "cdfg"
    GIR = "gir"
    LIR = "lir"
    ENF = "enf"

    @classmethod
    def parse(cls, value: str) -> TargetIr:
        """Case-insensitive lookup, e.g. ``TargetIr.parse("LIR")``."""
        try:
            return cls(value.lower())
        except ValueError:
            raise InvalidTargetIr(value) from None


class TaskPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskPhase.SUCCEEDED, TaskPhase.FAILED)


def _source_part(filename: str, source: bytes) -> dict[str, tuple[str, bytes, str]]:
    return {SOURCE_PART_NAME: (filename, source, APPLICATION_OCTET_STREAM_MIME)}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompileRequest:
    """A model to compile for a target NPU.

    Usage::

        request = (
            CompileRequest(target_npu_spec, model_bytes)
            .with_compiler_config({})
            .with_target_ir(TargetIr.LIR)
            .with_filename("mnist.tflite")
        )
    """

    target_npu_spec: Any
    source: bytes = field(repr=False)
    compiler_config: Any | None = None
    target_ir: TargetIr = TargetIr.ENF
    filename: str = DEFAULT_FILENAME

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", bytes(self.source))

    def with_target_ir(self, target_ir: TargetIr | str) -> CompileRequest:
        if not isinstance(target_ir, TargetIr):
            target_ir = TargetIr.parse(target_ir)
        return replace(self, target_ir=target_ir)

    def with_compiler_config(self, compiler_config: Any) -> CompileRequest:
        return replace(self, compiler_config=compiler_config)

    def with_filename(self, filename: str) -> CompileRequest:
        return replace(self, filename=filename)

    def to_form(self) -> Form:
        data = {
            TARGET_IR_PART_NAME: self.target_ir.value,
            TARGET_NPU_SPEC_PART_NAME: json.dumps(self.target_npu_spec),
        }
        if self.compiler_config is not None:
            data[COMPILER_CONFIG_PART_NAME] = json.dumps(self.compiler_config)
        return data, _source_part(self.filename, self.source)


@dataclass(frozen=True)
class OptimizeRequest:
    source: bytes = field(repr=False)
    filename: str = DEFAULT_FILENAME

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", bytes(self.source))

    def with_filename(self, filename: str) -> OptimizeRequest:
        return replace(self, filename=filename)

    def to_form(self) -> Form:
        return {}, _source_part(self.filename, self.source)


@dataclass(frozen=True)
class CalibrateRequest:
    """An ONNX model plus the names of its input tensors."""

    source: bytes = field(repr=False)
    input_tensors: Sequence[str] = ()
    filename: str = DEFAULT_FILENAME

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", bytes(self.source))
        object.__setattr__(self, "input_tensors", tuple(self.input_tensors))

    def with_filename(self, filename: str) -> CalibrateRequest:
        return replace(self, filename=filename)

    def to_form(self) -> Form:
        data = {DSS_INPUT_TENSORS_PART_NAME: json.dumps(list(self.input_tensors))}
        return data, _source_part(self.filename, self.source)


@dataclass(frozen=True)
class QuantizeRequest:
    """An ONNX model, its input tensors and per-tensor ``(min, max)`` ranges."""

    source: bytes = field(repr=False)
    input_tensors: Sequence[str] = ()
    dynamic_ranges: Mapping[str, tuple[float, float]] = field(default_factory=dict)
    filename: str = DEFAULT_FILENAME

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", bytes(self.source))
        object.__setattr__(self, "input_tensors", tuple(self.input_tensors))
        object.__setattr__(self, "dynamic_ranges", {
            name: (float(lo), float(hi)) for name, (lo, hi) in self.dynamic_ranges.items()
        })

    def with_filename(self, filename: str) -> QuantizeRequest:
        return replace(self, filename=filename)

    def to_form(self) -> Form:
        data = {
            DSS_INPUT_TENSORS_PART_NAME: json.dumps(list(self.input_tensors)),
            DSS_DYNAMIC_RANGES_PART_NAME: json.dumps(
                {name: list(pair) for name, pair in self.dynamic_ranges.items()}
            ),
        }
        return data, _source_part(self.filename, self.source)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompileTask:
    """Server-side state of a compile task.

    Never mutated by the client: every poll replaces it with the copy
    the server returns.
    """

    task_id: str
    phase: TaskPhase
    submit_time: int
    version: int = 1
    start_time: int | None = None
    finish_time: int | None = None
    progress: float = 0.0
    error_message: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> CompileTask:
        """Parse from ``POST /tasks`` or ``GET /tasks/{id}``.

        Raises ``KeyError``/``ValueError``/``TypeError`` on a body that does
        not describe a task; callers turn those into ``ApiError``.
        """
        return cls(
            task_id=str(data["task_id"]),
            phase=TaskPhase(data["phase"]),
            submit_time=int(data["submit_time"]),
            version=int(data.get("version", 1)),
            start_time=data.get("start_time"),
            finish_time=data.get("finish_time"),
            progress=float(data.get("progress") or 0.0),
            error_message=data.get("error_message"),
        )


@dataclass(frozen=True)
class ApiErrorBody:
    error_code: str
    message: str
    trace_id: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> ApiErrorBody:
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return cls(
            error_code=str(data["error_code"]),
            message=str(data["message"]),
            trace_id=data.get("trace_id"),
        )


@dataclass(frozen=True)
class VersionInfo:
    version: str
    git_hash: str | None = None
    build_time: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> VersionInfo:
        return cls(
            version=str(data["version"]),
            git_hash=data.get("git_hash"),
            build_time=data.get("build_time"),
        )
