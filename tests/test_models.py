"""Tests for furiosa_client.models: request builders and CompileTask."""

import dataclasses
import json

import pytest

from furiosa_client import (
    CalibrateRequest,
    CompileRequest,
    CompileTask,
    InvalidTargetIr,
    OptimizeRequest,
    QuantizeRequest,
    TargetIr,
    TaskPhase,
)
from furiosa_client.models import APPLICATION_OCTET_STREAM_MIME

DYNAMIC_RANGES = {
    "input": (4.337553946243133e-06, 0.9999983906745911),
    "5": (-0.6236848831176758, 1.7029087543487549),
    "6": (0.0, 1.7029087543487549),
    "8": (-1.2079784870147705, 1.0805176496505737),
    "output": (0.0, 1.0805176496505737),
}


# -- TargetIr ------------------------------------------------------------------


class TestTargetIr:
    @pytest.mark.parametrize("name", ["dfg", "ldfg", "cdfg", "gir", "lir", "enf"])
    def test_parse_roundtrip(self, name):
        assert TargetIr.parse(name).value == name

    def test_parse_is_case_insensitive(self):
        assert TargetIr.parse("LIR") is TargetIr.LIR

    def test_parse_unknown_raises(self):
        with pytest.raises(InvalidTargetIr, match="tflite"):
            TargetIr.parse("tflite")


# -- CompileRequest ------------------------------------------------------------


class TestCompileRequest:
    def test_defaults(self):
        r = CompileRequest({"npu": "warboy"}, b"model")
        assert r.target_ir is TargetIr.ENF
        assert r.filename == "noname"
        assert r.compiler_config is None

    def test_fluent_setters_return_new_request(self):
        base = CompileRequest({"npu": "warboy"}, b"model")
        r = base.with_target_ir(TargetIr.LIR).with_compiler_config({"opt": 2}).with_filename("m.tflite")

        assert (r.target_ir, r.compiler_config, r.filename) == (TargetIr.LIR, {"opt": 2}, "m.tflite")
        assert base.target_ir is TargetIr.ENF
        assert base.filename == "noname"

    def test_with_target_ir_accepts_string(self):
        r = CompileRequest({}, b"m").with_target_ir("gir")
        assert r.target_ir is TargetIr.GIR

    def test_is_frozen(self):
        r = CompileRequest({}, b"m")
        with pytest.raises(dataclasses.FrozenInstanceError):
            r.filename = "other"  # type: ignore[misc]

    def test_source_copied_to_bytes(self):
        buf = bytearray(b"model")
        r = CompileRequest({}, buf)
        buf[0:1] = b"X"
        assert r.source == b"model"
        assert isinstance(r.source, bytes)

    def test_form_parts(self):
        spec = {"npu": "warboy", "dpes": 64}
        data, files = CompileRequest(spec, b"model").with_filename("m.tflite").to_form()

        assert data["target_ir"] == "enf"
        assert json.loads(data["target_npu_spec"]) == spec
        assert "compiler_config" not in data
        assert files == {"source": ("m.tflite", b"model", APPLICATION_OCTET_STREAM_MIME)}

    def test_form_includes_compiler_config_when_set(self):
        data, _ = CompileRequest({}, b"m").with_compiler_config({}).to_form()
        assert json.loads(data["compiler_config"]) == {}

    def test_repr_omits_source(self):
        assert "secret-model-bytes" not in repr(CompileRequest({}, b"secret-model-bytes"))


# -- DSS requests --------------------------------------------------------------


class TestDssRequests:
    def test_optimize_form(self):
        data, files = OptimizeRequest(b"onnx", filename="test.onnx").to_form()
        assert data == {}
        assert files["source"][0] == "test.onnx"

    def test_calibrate_form(self):
        data, files = CalibrateRequest(b"onnx", ["input", "mask"]).to_form()
        assert json.loads(data["input_tensors"]) == ["input", "mask"]
        assert files["source"] == ("noname", b"onnx", APPLICATION_OCTET_STREAM_MIME)

    def test_quantize_roundtrip_preserves_ranges(self):
        req = QuantizeRequest(b"onnx", ["input"], DYNAMIC_RANGES, filename="test.onnx")
        data, _ = req.to_form()

        tensors = json.loads(data["input_tensors"])
        ranges = {k: tuple(v) for k, v in json.loads(data["dynamic_ranges"]).items()}

        assert set(tensors) == {"input"}
        assert ranges == DYNAMIC_RANGES
        assert "4.337553946243133e-06" in data["dynamic_ranges"]
        assert ranges["5"][0] < 0

    def test_quantize_normalizes_pairs(self):
        req = QuantizeRequest(b"onnx", ("input",), {"input": [0, 1]})
        assert req.dynamic_ranges == {"input": (0.0, 1.0)}
        assert req.input_tensors == ("input",)


# -- CompileTask ---------------------------------------------------------------


class TestCompileTask:
    def test_from_response(self):
        t = CompileTask.from_response({
            "version": 1,
            "task_id": "abc-123",
            "phase": "Running",
            "submit_time": 1700000000,
            "start_time": 1700000005,
            "finish_time": None,
            "progress": 0.42,
            "error_message": None,
        })
        assert t.task_id == "abc-123"
        assert t.phase is TaskPhase.RUNNING
        assert t.start_time == 1700000005
        assert t.finish_time is None
        assert t.progress == pytest.approx(0.42)

    def test_from_response_minimal(self):
        t = CompileTask.from_response({"task_id": 7, "phase": "Pending", "submit_time": 1})
        assert t.task_id == "7"
        assert t.progress == 0.0
        assert t.error_message is None

    def test_from_response_unknown_phase(self):
        with pytest.raises(ValueError):
            CompileTask.from_response({"task_id": "x", "phase": "Paused", "submit_time": 1})

    @pytest.mark.parametrize("phase,terminal", [
        (TaskPhase.PENDING, False),
        (TaskPhase.RUNNING, False),
        (TaskPhase.SUCCEEDED, True),
        (TaskPhase.FAILED, True),
    ])
    def test_terminal_phases(self, phase, terminal):
        assert phase.is_terminal is terminal
