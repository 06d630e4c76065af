"""Tutorial 01: Compile a model and watch the task progress.

Submits a TFLite model to the compiler, prints every phase change while
the task is polled, and writes the compiled binary next to the model.

Prerequisites:
    1. Credentials in the environment or ~/.furiosa/credential:
           FURIOSA_ACCESS_KEY_ID=...
           FURIOSA_SECRET_ACCESS_KEY=...
    2. Install client: pip install -e .
    3. Run: python tutorial/01_compile.py model.tflite npu_spec.json
"""

import asyncio
import json
import sys
from pathlib import Path

from furiosa_client import CompileRequest, CompileTask, FuriosaClient


def print_status(task: CompileTask) -> None:
    print(f"  {task.task_id}  {task.phase.value:<10} {task.progress * 100:5.1f}%")


async def main(model_path: Path, spec_path: Path) -> None:
    client = FuriosaClient()
    print(f"Endpoint: {client.endpoint}")

    request = (
        CompileRequest(json.loads(spec_path.read_text()), model_path.read_bytes())
        .with_compiler_config({})
        .with_filename(model_path.name)
    )

    handle = await client.submit_compile(request)
    print(f"Task submitted: {handle.task_id}")

    binary = await handle.wait(on_status=print_status)

    out = model_path.with_suffix(".enf")
    out.write_bytes(binary)
    print(f"\nWrote {len(binary)} bytes to {out}")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(Path(sys.argv[1]), Path(sys.argv[2])))
