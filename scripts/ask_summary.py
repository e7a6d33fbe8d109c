"""
Ask the activity summary a question from the command line.

Jobs come from the local job store; activity logs come from the log API, falling back
to the local cache when the API is unreachable.

    python scripts/ask_summary.py "overview"
    python scripts/ask_summary.py "Acme" --no-delay --cache-dir ./cache
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys


# Allow `import app.*` from backend/
REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = REPO_ROOT / "backend"
sys.path.insert(0, str(BACKEND_DIR))


from app.core.config import settings  # noqa: E402
from app.core.logging_config import configure_logging  # noqa: E402
from app.services.job_store import JobStore, LocalState  # noqa: E402
from app.services.log_repository import build_log_repository  # noqa: E402
from app.services.summary import SummaryGenerator  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Summarize job-search activity.")
    parser.add_argument("query", help='Company name, or a question containing "overview" or "summary".')
    parser.add_argument("--no-delay", action="store_true", help="Skip the analysis delay.")
    parser.add_argument("--cache-dir", default=None, help=f"Local state directory (default {settings.LOCAL_CACHE_DIR}).")
    parser.add_argument("--base-url", default=None, help=f"Log API base URL (default {settings.LOG_API_BASE_URL}).")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    if not args.query.strip():
        print("Query is required", file=sys.stderr)
        return 2

    state = LocalState(args.cache_dir)
    jobs = JobStore(state).list()
    with build_log_repository(args.cache_dir, args.base_url) as repository:
        logs = repository.list()

    delay = 0.0 if args.no_delay else settings.SUMMARY_DELAY_SECONDS
    report = SummaryGenerator(delay).generate(args.query, jobs, logs)
    print(report.to_text())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
