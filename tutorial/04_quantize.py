"""Tutorial 04: Optimize, calibrate and quantize an ONNX model.

The DSS endpoints are single-shot: each call uploads the model and returns
the transformed model bytes, no task polling involved.

Usage:
    python tutorial/04_quantize.py model.onnx dynamic_ranges.json

``dynamic_ranges.json`` maps tensor names to ``[min, max]``::

    {"input": [4.337553946243133e-06, 0.9999983906745911],
     "output": [0.0, 1.0805176496505737]}
"""

import asyncio
import json
import sys
from pathlib import Path

from furiosa_client import CalibrateRequest, FuriosaClient, OptimizeRequest, QuantizeRequest


async def main(model_path: Path, ranges_path: Path) -> None:
    client = FuriosaClient(retries=2)

    optimized = await client.optimize(
        OptimizeRequest(model_path.read_bytes(), filename="optimized.onnx"),
    )
    print(f"Optimized: {len(optimized)} bytes")

    calibration = await client.build_calibration_model(
        CalibrateRequest(optimized, ["input"], filename=model_path.name),
    )
    model_path.with_suffix(".calibration.onnx").write_bytes(calibration)
    print(f"Calibration model: {len(calibration)} bytes")

    ranges = {name: tuple(pair) for name, pair in json.loads(ranges_path.read_text()).items()}
    quantized = await client.quantize(
        QuantizeRequest(optimized, ["input"], ranges, filename=model_path.name),
    )
    out = model_path.with_suffix(".quantized.onnx")
    out.write_bytes(quantized)
    print(f"Wrote {len(quantized)} bytes to {out}")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(Path(sys.argv[1]), Path(sys.argv[2])))
