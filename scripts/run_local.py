#!/usr/bin/env python3
"""Local runner.

Starts the FastAPI note service, runs a CRUD smoke test against it, and
optionally launches the Streamlit UI (``--ui``).
"""

import argparse
import atexit
import signal
import subprocess
import sys
import time

import httpx

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

API = {
    "name": "FastAPI note service",
    "module": "server.main",
    "port": 8000,
}

BASE_URL = f"http://localhost:{API['port']}"
STARTUP_TIMEOUT = 30  # seconds to wait for the service

# ---------------------------------------------------------------------------
# Process management
# ---------------------------------------------------------------------------

_processes: list[subprocess.Popen] = []


def _cleanup() -> None:
    """Kill all child processes."""
    for proc in _processes:
        try:
            proc.terminate()
        except OSError:
            pass
    time.sleep(1)
    for proc in _processes:
        try:
            proc.kill()
        except OSError:
            pass
    print("\n--- All processes cleaned up ---")


atexit.register(_cleanup)
signal.signal(signal.SIGINT, lambda *_: sys.exit(1))
signal.signal(signal.SIGTERM, lambda *_: sys.exit(1))


def start_process(args: list[str], name: str) -> subprocess.Popen:
    """Start a background process."""
    proc = subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
    _processes.append(proc)
    print(f"  Started {name} (PID {proc.pid})")
    return proc


def wait_for_api(timeout: int = STARTUP_TIMEOUT) -> dict | None:
    """Wait for /health to answer. Returns the health payload."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            with httpx.Client(timeout=5) as client:
                resp = client.get(f"{BASE_URL}/health")
                if resp.status_code == 200:
                    print(f"  Note service (port {API['port']}) is ready")
                    return resp.json()
        except (httpx.ConnectError, httpx.ReadTimeout):
            pass
        time.sleep(0.5)
    print(f"  TIMEOUT: note service did not start in {timeout}s")
    return None


# ---------------------------------------------------------------------------
# Smoke test
# ---------------------------------------------------------------------------


def check(label: str, ok: bool) -> bool:
    print(f"  [{'PASS' if ok else 'FAIL'}] {label}")
    return ok


def smoke_test(client: httpx.Client) -> bool:
    """Exercise the six note operations end to end."""
    results: list[bool] = []

    resp = client.post(
        f"{BASE_URL}/notes",
        json={"title": "Smoke test", "content": "Created by run_local", "tags": ["smoke"]},
    )
    results.append(check("create returns 201", resp.status_code == 201))
    note_id = resp.json().get("id", "")

    listed = client.get(f"{BASE_URL}/notes").json()
    results.append(check("list contains new note", any(n["_id"] == note_id for n in listed)))

    resp = client.patch(f"{BASE_URL}/notes/{note_id}", json={"title": "Smoke test (edited)"})
    results.append(check("update returns 204", resp.status_code == 204))

    note = client.get(f"{BASE_URL}/notes/{note_id}").json()
    results.append(
        check(
            "partial update keeps content",
            note["title"] == "Smoke test (edited)" and note["content"] == "Created by run_local",
        )
    )

    found = client.get(f"{BASE_URL}/notes/search", params={"term": "RUN_LOCAL"}).json()
    results.append(check("search is case-insensitive", [n["_id"] for n in found] == [note_id]))

    resp = client.delete(f"{BASE_URL}/notes/{note_id}")
    results.append(check("delete returns 204", resp.status_code == 204))
    resp = client.delete(f"{BASE_URL}/notes/{note_id}")
    results.append(check("second delete returns 404", resp.status_code == 404))

    return all(results)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--ui", action="store_true", help="Launch the Streamlit UI")
    args = parser.parse_args()

    print("=" * 60)
    print("Note Taking App — Local Runner")
    print("=" * 60)

    print("\n--- Starting note service ---")
    start_process([sys.executable, "-m", API["module"]], API["name"])
    health = wait_for_api()
    if health is None:
        print("FATAL: note service failed to start. Aborting.")
        return 1
    print(f"  Backend: {health['backend']}  Notes: {health['total_notes']}")

    print("\n--- Smoke test ---")
    with httpx.Client(timeout=10) as client:
        passed = smoke_test(client)
    print(f"\nSMOKE TEST: {'PASS' if passed else 'FAIL'}")

    if args.ui:
        print("\n--- Starting Streamlit UI (Ctrl+C to stop) ---")
        ui = start_process(
            [sys.executable, "-m", "streamlit", "run", "ui/app.py"], "Streamlit UI"
        )
        ui.wait()

    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
