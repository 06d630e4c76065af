"""Tutorial 02: Blocking client, no asyncio in your code.

``BlockingFuriosaClient`` runs the same submit/poll/fetch protocol as the
async client on a private event loop, so scripts and notebooks can call
it like any other function.

Usage:
    python tutorial/02_blocking_compile.py model.tflite npu_spec.json [lir]
"""

import json
import sys
from pathlib import Path

from furiosa_client import BlockingFuriosaClient, CompileRequest, TargetIr


def main() -> None:
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)

    model_path, spec_path = Path(sys.argv[1]), Path(sys.argv[2])
    target_ir = TargetIr.parse(sys.argv[3]) if len(sys.argv) > 3 else TargetIr.ENF

    request = (
        CompileRequest(json.loads(spec_path.read_text()), model_path.read_bytes())
        .with_target_ir(target_ir)
        .with_filename(model_path.name)
    )

    with BlockingFuriosaClient(poll_timeout=900) as client:
        print(f"Server version: {client.server_version().version}")
        binary = client.compile(request)

    out = model_path.with_suffix(f".{target_ir.value}")
    out.write_bytes(binary)
    print(f"Wrote {len(binary)} bytes to {out}")


if __name__ == "__main__":
    main()
