"""
Dev-only reset script for the Job Search Tracker.

What it does:
- Deletes every row from log_entries, job_applications and users (children first)
- Optionally clears the local JSON state (--local) used by the CLI

Guardrails:
- Requires ENV=dev
- Requires confirmation prompt unless --yes is passed
- Logs actions to logs/ with a timestamped file
"""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
import sys
from typing import Iterable


# Allow `import app.*` from backend/
REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = REPO_ROOT / "backend"
sys.path.insert(0, str(BACKEND_DIR))


from sqlalchemy import text  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.database import SessionLocal  # noqa: E402
from app.services.job_store import STORAGE_KEYS, LocalState  # noqa: E402


# Order matters: log_entries and job_applications reference users.
TABLES_TO_CLEAR = [
    "log_entries",
    "job_applications",
    "users",
]


def utc_now_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def log_write(fp: Path, lines: Iterable[str]) -> None:
    fp.parent.mkdir(parents=True, exist_ok=True)
    with fp.open("a", encoding="utf-8") as f:
        for line in lines:
            f.write(line.rstrip("\n") + "\n")


def main() -> int:
    parser = argparse.ArgumentParser(description="Dev reset: clear tracker tables.")
    parser.add_argument("--yes", action="store_true", help="Skip confirmation prompt.")
    parser.add_argument("--local", action="store_true", help="Also clear the local JSON state.")
    args = parser.parse_args()

    if (settings.ENV or "").strip().lower() != "dev":
        print(f"Refusing to run: ENV must be 'dev' (got {settings.ENV!r})")
        return 2

    log_path = REPO_ROOT / "logs" / f"reset_dev_db_{utc_now_stamp()}.log"
    log_write(log_path, [f"[start] {datetime.now(timezone.utc).isoformat()} env={settings.ENV}"])
    log_write(log_path, [f"[db] url={settings.database_url.split('@')[-1]} (creds redacted)"])

    if not args.yes:
        msg = (
            "WARNING: This will DELETE all rows from tables:\n"
            f"  {', '.join(TABLES_TO_CLEAR)}\n\n"
            "Type RESET to continue: "
        )
        resp = input(msg).strip()
        if resp != "RESET":
            print("Cancelled.")
            log_write(log_path, ["[cancelled] user did not confirm"])
            return 1

    with SessionLocal() as db:
        for table in TABLES_TO_CLEAR:
            result = db.execute(text(f"DELETE FROM {table}"))
            log_write(log_path, [f"[db] cleared {table} rows={result.rowcount}"])
        db.commit()

    if args.local:
        state = LocalState()
        for key in STORAGE_KEYS:
            state.remove(key)
        log_write(log_path, [f"[local] cleared {state.root}"])

    log_write(log_path, [f"[done] {datetime.now(timezone.utc).isoformat()}"])
    print(f"Done. Log written to: {log_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
