#!/usr/bin/env python3
"""
InsurTrack — local stack helper.

Wraps Docker Compose for the API, Celery worker/beat, Postgres, Redis and
MinIO, plus the one-off jobs run inside the API container.
Usage: python manage.py <command> [options]
"""

import argparse
import json
import logging
import subprocess
import sys
import time
import urllib.error
import urllib.request
from typing import List, Optional

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger("manage")

SERVICES = ("api", "worker", "beat", "postgres", "redis", "minio")

ACCESS_URLS = {
    "API": "http://localhost:8000",
    "Swagger docs": "http://localhost:8000/docs",
    "Health check": "http://localhost:8000/health",
    "MinIO console": "http://localhost:9001",
    "PostgreSQL": "localhost:5432",
    "Redis": "localhost:6379",
}


class Stack:
    """Docker Compose lifecycle and maintenance jobs for the InsurTrack services."""

    def __init__(self, compose_file: Optional[str] = None):
        self.compose_file = compose_file

    def _compose(self, *args: str) -> List[str]:
        cmd = ["docker", "compose"]
        if self.compose_file:
            cmd += ["-f", self.compose_file]
        return cmd + list(args)

    def _run(self, cmd: List[str], check: bool = True) -> subprocess.CompletedProcess:
        logger.info("$ %s", " ".join(cmd))
        result = subprocess.run(cmd, check=False, text=True, capture_output=True)
        for line in (result.stdout or "").splitlines():
            if line.strip():
                logger.info("  %s", line.rstrip())
        if result.returncode != 0:
            for line in (result.stderr or "").splitlines():
                if line.strip():
                    logger.error("  %s", line.rstrip())
            if check:
                raise subprocess.CalledProcessError(result.returncode, cmd, result.stdout, result.stderr)
        return result

    def _exec_api(self, *args: str) -> None:
        self._run(self._compose("exec", "api", *args))

    def _wait_healthy(self, url: str, timeout: int = 60) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            try:
                with urllib.request.urlopen(url, timeout=5) as resp:
                    if resp.status == 200:
                        return True
            except (urllib.error.URLError, OSError):
                pass
            time.sleep(2)
        return False

    # ─── Lifecycle ────────────────────────────────────────
    def up(self, build: bool = False) -> None:
        cmd = self._compose("up", "-d")
        if build:
            cmd.append("--build")
        self._run(cmd)
        if self._wait_healthy(ACCESS_URLS["Health check"]):
            logger.info("API is healthy")
        else:
            logger.warning("API did not become healthy in time; check `python manage.py logs api`")
        self.urls()

    def down(self, volumes: bool = False) -> None:
        if volumes:
            confirm = input("This deletes all Postgres, Redis and MinIO data. Type 'yes' to confirm: ")
            if confirm.strip().lower() != "yes":
                logger.info("Cancelled")
                return
            self._run(self._compose("down", "-v"))
        else:
            self._run(self._compose("down"))

    def restart(self, service: Optional[str] = None) -> None:
        self._run(self._compose("restart", *([service] if service else [])))

    def logs(self, service: Optional[str] = None, tail: int = 100) -> None:
        cmd = self._compose("logs", "--tail", str(tail), "-f", *([service] if service else []))
        try:
            subprocess.run(cmd)
        except KeyboardInterrupt:
            logger.info("Stopped following logs")

    def status(self) -> None:
        self._run(self._compose("ps"), check=False)

    # ─── Jobs ─────────────────────────────────────────────
    def init_db(self) -> None:
        """Apply Alembic migrations (schema + row-level security)."""
        self._exec_api("alembic", "upgrade", "head")

    def seed(self) -> None:
        """Create the demo admin, agent and client accounts."""
        self._exec_api("python", "-m", "scripts.seed_users")

    def remind(self, today: Optional[str] = None) -> None:
        """Queue the EMI reminder task now instead of waiting for beat."""
        args = json.dumps([today] if today else [])
        self._exec_api(
            "celery", "-A", "insurtrack.tasks", "call",
            "insurtrack.tasks.reminder_tasks.send_emi_reminders",
            "--args", args,
        )

    def smoke(self) -> None:
        try:
            with urllib.request.urlopen(ACCESS_URLS["Health check"], timeout=10) as resp:
                data = json.loads(resp.read().decode())
            logger.info("API: status=%s env=%s", data.get("status"), data.get("env"))
        except (urllib.error.URLError, OSError, ValueError) as exc:
            logger.error("API health check failed: %s", exc)
        try:
            urllib.request.urlopen("http://localhost:9000/minio/health/live", timeout=10)
            logger.info("MinIO is reachable")
        except (urllib.error.URLError, OSError) as exc:
            logger.error("MinIO health check failed: %s", exc)

    def urls(self) -> None:
        for name, url in ACCESS_URLS.items():
            logger.info("  %-14s %s", name, url)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="InsurTrack local stack helper")
    parser.add_argument("-f", "--compose-file", help="alternate docker compose file")
    sub = parser.add_subparsers(dest="command", required=True)

    up = sub.add_parser("up", help="start containers")
    up.add_argument("--build", action="store_true", help="rebuild images first")

    down = sub.add_parser("down", help="stop containers")
    down.add_argument("--volumes", action="store_true", help="also delete data volumes")

    restart = sub.add_parser("restart", help="restart containers in place")
    restart.add_argument("service", nargs="?", choices=SERVICES)

    logs = sub.add_parser("logs", help="follow container logs")
    logs.add_argument("service", nargs="?", choices=SERVICES)
    logs.add_argument("--tail", type=int, default=100)

    sub.add_parser("status", help="show container status")
    sub.add_parser("init-db", help="run Alembic migrations")
    sub.add_parser("seed", help="create demo accounts")

    remind = sub.add_parser("remind", help="run the EMI reminder job now")
    remind.add_argument("--today", help="ISO date to run as (default: today)")

    sub.add_parser("test", help="smoke-test running services")
    sub.add_parser("urls", help="print service URLs")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    stack = Stack(compose_file=args.compose_file)

    handlers = {
        "up": lambda: stack.up(build=args.build),
        "down": lambda: stack.down(volumes=args.volumes),
        "restart": lambda: stack.restart(args.service),
        "logs": lambda: stack.logs(args.service, tail=args.tail),
        "status": stack.status,
        "init-db": stack.init_db,
        "seed": stack.seed,
        "remind": lambda: stack.remind(args.today),
        "test": stack.smoke,
        "urls": stack.urls,
    }
    try:
        handlers[args.command]()
    except subprocess.CalledProcessError as exc:
        logger.error("Command failed with exit code %s", exc.returncode)
        sys.exit(1)


if __name__ == "__main__":
    main()
