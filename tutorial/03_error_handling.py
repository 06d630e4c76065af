"""Tutorial 03: Error handling.

A compile task that ends in ``Failed`` raises ``CompilationFailed``; its
message is the compiler log fetched from the task. Rejected requests raise
``ApiError`` with the server's ``error_code`` and ``trace_id``, which is
what support will ask for.

Usage:
    python tutorial/03_error_handling.py broken_model.tflite npu_spec.json
"""

import asyncio
import json
import sys
from pathlib import Path

from furiosa_client import (
    ApiError,
    AuthError,
    CompilationFailed,
    CompileRequest,
    FuriosaClient,
    NoCredentials,
    TaskTimeout,
)


async def main(model_path: Path, spec_path: Path) -> None:
    try:
        client = FuriosaClient()
    except NoCredentials as e:
        print(f"ERROR: {e}")
        return

    request = CompileRequest(json.loads(spec_path.read_text()), model_path.read_bytes())

    try:
        await client.compile(request, timeout=300)
    except CompilationFailed as e:
        print(f"Compilation of task {e.task_id} failed")
        print("--- compiler log ---")
        print(e.log)
    except AuthError as e:
        print(f"Check your access keys: {e.message}")
    except ApiError as e:
        print(f"Request rejected ({e.status_code}, {e.error_code}): {e.message}")
        if e.trace_id:
            print(f"  trace id: {e.trace_id}")
    except TaskTimeout as e:
        print(f"Gave up after {e.timeout}s; task {e.task_id} may still finish on the server")
    else:
        print("Unexpected success")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(Path(sys.argv[1]), Path(sys.argv[2])))
