"""Enroll every active student or teacher with a photo (skips ACTIVE ones)."""

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

from src.school_attendance.school_attendance.common.validators import parse_person_kind
from src.school_attendance.school_attendance.container import build_container


def _print_progress(stats) -> None:
    print(f"\renrolled={stats.enrolled} failed={stats.failed} skipped={stats.skipped}", end="", flush=True)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Bulk face enrollment")
    parser.add_argument("--tenant", type=int, required=True, help="tenant id")
    parser.add_argument("--kind", choices=["student", "teacher"], required=True)
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

    stats = container.enrollment_service.bulk_enroll(args.tenant, parse_person_kind(args.kind), on_progress=_print_progress)
    print()
    print(f"Enrolled: {stats.enrolled}  Failed: {stats.failed}  Skipped: {stats.skipped}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
