#!/usr/bin/env python
"""
Run the advisory backend and the chainlit UI side by side.

The UI is started only after ``/health`` answers, so the first form submission
never races the backend start-up.
"""

import argparse
import os
import signal
import subprocess
import sys
import time
from typing import Dict, List

import httpx

from agro_helper.infra.config import get_config


def build_commands(port: int, reload: bool) -> List[List[str]]:
    python = sys.executable
    backend = [
        python, "-m", "uvicorn", "agro_helper.api.server:create_app",
        "--factory", "--port", str(port),
    ]
    ui = [python, "-m", "chainlit", "run", "chainlit_app.py"]
    if reload:
        backend.append("--reload")
        ui.append("--watch")
    return [backend, ui]


def wait_for_backend(url: str, timeout: float) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            if httpx.get(f"{url}/health", timeout=2.0).is_success:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(0.5)
    return False


def terminate_processes(processes: List[subprocess.Popen]) -> None:
    for proc in processes:
        if proc.poll() is None:
            proc.terminate()
    for proc in processes:
        if proc.poll() is None:
            proc.wait()


def main():
    cfg = get_config()
    parser = argparse.ArgumentParser(description="Start backend and UI together")
    parser.add_argument("--port", type=int, default=cfg.port)
    parser.add_argument("--no-reload", action="store_true")
    parser.add_argument("--wait", type=float, default=30.0, help="backend start-up timeout, seconds")
    args = parser.parse_args()

    backend_cmd, ui_cmd = build_commands(args.port, reload=not args.no_reload)
    backend_url = f"http://localhost:{args.port}"
    ui_env: Dict[str, str] = dict(os.environ, BACKEND_URL=backend_url)
    processes: List[subprocess.Popen] = []

    def handle_signal(signum, frame):
        terminate_processes(processes)
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, handle_signal)

    print(f"Starting: {' '.join(backend_cmd)}")
    processes.append(subprocess.Popen(backend_cmd))
    if not wait_for_backend(backend_url, args.wait):
        print(f"Backend did not become healthy at {backend_url}", file=sys.stderr)
        terminate_processes(processes)
        sys.exit(1)

    print(f"Starting: {' '.join(ui_cmd)}")
    processes.append(subprocess.Popen(ui_cmd, env=ui_env))

    try:
        for proc in processes:
            proc.wait()
    except KeyboardInterrupt:
        pass
    finally:
        terminate_processes(processes)


if __name__ == "__main__":
    main()
