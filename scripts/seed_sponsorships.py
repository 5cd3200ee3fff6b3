"""
Insert the sample sponsorship listings into the configured backend.

Uses the same settings as the API (STORAGE_BACKEND, DATABASE_URL, DATA_DIR),
so it is only useful against a persistent backend.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sponsorconnect.config import get_settings
from sponsorconnect.dependencies import build_db_client
from sponsorconnect.seed import SAMPLE_SPONSORSHIPS, seed_sample_sponsorships


logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed sample sponsorships")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the sample listings without saving them",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")

    if args.dry_run:
        for sample in SAMPLE_SPONSORSHIPS:
            logger.info("Would create %s (%s)", sample["title"], sample["category"])
        return 0

    settings = get_settings()
    if settings.resolved_storage_backend == "memory":
        logger.error("In-memory backend selected; set STORAGE_BACKEND or DATABASE_URL")
        return 1

    created = seed_sample_sponsorships(build_db_client(settings))
    logger.info("Created %d sponsorships", len(created))
    return 0


if __name__ == "__main__":
    sys.exit(main())
