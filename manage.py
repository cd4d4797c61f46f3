#!/usr/bin/env python3
"""
Bakery stock management CLI.

Usage:
    python manage.py migrate     Apply pending database migrations
                     --status    Show applied and pending versions
                     --verify    Check integrity and the documents table
    python manage.py start       Migrate, then start the API server in the background
    python manage.py stop        Graceful shutdown
    python manage.py status      Check if the server is running
"""

import argparse
import asyncio
import os
import signal
import socket
import subprocess
import sys
import time
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
PID_FILE = ROOT_DIR / ".bakery_stock.pid"


def _is_pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
        return True
    except OSError:
        return False


def _read_pid() -> int | None:
    """Read PID from the pid file, return None if missing or stale."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
    except (ValueError, OSError):
        return None
    if _is_pid_alive(pid):
        return pid
    PID_FILE.unlink(missing_ok=True)
    return None


def _is_port_free(port: int) -> bool:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", port))
        return True
    except OSError:
        return False


def cmd_migrate(args: argparse.Namespace) -> bool:
    """Apply pending migrations, or report status. Returns True on success."""
    from bakery_stock.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        run_migrations,
        verify_schema_integrity,
    )

    if getattr(args, "status", False):
        status = asyncio.run(get_migration_status(args.db_path))
        print(f"Database exists:    {status['exists']}")
        print(f"Current version:    {status['current_version'] or 'N/A'}")
        print(f"Pending migrations: {status['pending_migrations']}")
        return True

    if getattr(args, "verify", False):
        checks = asyncio.run(verify_schema_integrity(args.db_path))
        for check in checks:
            print(f"[{check['status']}] {check['check']}")
            if check.get("missing"):
                print(f"       missing: {check['missing']}")
        return all(c["status"] == "PASS" for c in checks)

    results = asyncio.run(run_migrations(args.db_path, create_backup_before=not args.no_backup))
    if not results:
        print("Database is up to date.")
    for result in results:
        state = "SUCCESS" if result.success else "FAILED"
        print(f"[{state}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    return all(r.success for r in results)


def cmd_start(args: argparse.Namespace) -> None:
    """Start uvicorn in the background and record its PID."""
    pid = _read_pid()
    if pid is not None:
        print(f"Server is already running (PID {pid}).")
        return

    if not _is_port_free(args.port):
        print(f"Error: Port {args.port} is in use.")
        sys.exit(1)

    args.db_path = None
    args.no_backup = False
    if not cmd_migrate(args):
        sys.exit(1)

    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "bakery_stock.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]

    print(f"Starting server on {args.host}:{args.port}...")
    proc = subprocess.Popen(uvicorn_cmd, cwd=str(ROOT_DIR))
    PID_FILE.write_text(str(proc.pid))

    print(f"Server started (PID {proc.pid}).")
    print(f"  API:      http://{args.host}:{args.port}/api/stock/materials")
    print(f"  Health:   http://{args.host}:{args.port}/health")
    print(f"  PID file: {PID_FILE}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the running server."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return

    print(f"Stopping server (PID {pid})...")
    try:
        os.kill(pid, signal.SIGTERM)
    except OSError as e:
        print(f"Error: could not signal PID {pid}: {e}")
        sys.exit(1)

    for _ in range(30):
        if not _is_pid_alive(pid):
            break
        time.sleep(0.1)
    else:
        print("Warning: Process did not exit within 3 seconds.")

    PID_FILE.unlink(missing_ok=True)
    print("Server stopped." if not _is_pid_alive(pid) else "Warning: Server may still be running.")


def cmd_status(args: argparse.Namespace) -> None:
    """Check if the server is running."""
    pid = _read_pid()
    if pid is not None:
        print(f"Server is running (PID {pid}).")
    elif not _is_port_free(args.port):
        print(f"No PID file, but port {args.port} is in use.")
    else:
        print(f"Server is not running (port {args.port} is free).")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Bakery stock management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_migrate = sub.add_parser("migrate", help="Apply pending database migrations")
    p_migrate.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.add_argument("--status", action="store_true", help="Show migration status only")
    p_migrate.add_argument("--verify", action="store_true", help="Verify schema integrity only")
    p_migrate.set_defaults(func=lambda a: sys.exit(0 if cmd_migrate(a) else 1))

    p_start = sub.add_parser("start", help="Migrate and start the server")
    p_start.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    p_start.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_start.set_defaults(func=cmd_start)

    p_stop = sub.add_parser("stop", help="Stop the server")
    p_stop.set_defaults(func=cmd_stop)

    p_status = sub.add_parser("status", help="Check server status")
    p_status.add_argument("--port", type=int, default=8000, help="Port to probe (default: 8000)")
    p_status.set_defaults(func=cmd_status)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
