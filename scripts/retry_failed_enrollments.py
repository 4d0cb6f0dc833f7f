"""Re-run enrollment for FAILED / NO_FACE rows older than N hours.

Meant for cron; safe to run repeatedly since each person is upserted.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.school_attendance.school_attendance.container import build_container


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Retry failed face enrollments")
    parser.add_argument("--tenant", type=int, required=True, help="tenant id")
    parser.add_argument("--hours", type=int, default=None, help="only rows untouched for at least this many hours")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format="%(asctime)s %(levelname)s %(message)s")

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        biometric=getattr(settings, "BIOMETRIC", None),
        notifications=getattr(settings, "NOTIFICATIONS", None),
    )
    if not container.biometric_settings.enabled:
        print("Biometric recognition is disabled (BIOMETRIC_ENABLED=0)", file=sys.stderr)
        return 1

    stats = container.enrollment_service.retry_failed(args.tenant, args.hours)
    print(f"Retried: {stats.retried}  Success: {stats.success}  Failed: {stats.failed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
