"""
Load catalog profiles from a JSON file into the configured record store.

The file holds a JSON array of profile objects using the API's camelCase
field names (name, category and fameLevel are required).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pydantic import ValidationError

from baddie_api.config import get_settings
from baddie_api.db import DbClient
from baddie_api.dependencies import build_db_client
from baddie_api.schemas import ProfileCreate


logger = logging.getLogger(__name__)


def load_profiles(path: Path) -> list[ProfileCreate]:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a JSON array of profiles")
    return [ProfileCreate.model_validate(item) for item in payload]


def seed_profiles(
    db: DbClient, profiles: list[ProfileCreate], replace_existing: bool = False
) -> int:
    if replace_existing:
        names = {profile.name for profile in profiles}
        for existing in db.list_profiles():
            if existing.name in names:
                db.delete_profile(existing.id)
                logger.info("Deleted existing profile %s (%s)", existing.name, existing.id)
    for profile in profiles:
        record = db.insert_profile(profile.to_record())
        logger.info("Inserted profile %s (%s)", record.name, record.id)
    return len(profiles)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the profile catalog")
    parser.add_argument("path", type=Path, help="JSON file with an array of profiles")
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Delete existing profiles with the same name before inserting",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    if not settings.database_url:
        logger.error("DATABASE_URL is not set; nothing would be persisted")
        return 1

    try:
        profiles = load_profiles(args.path)
    except (OSError, ValueError, ValidationError) as e:
        logger.error("Could not load %s: %s", args.path, e)
        return 1

    db = build_db_client(settings)
    inserted = seed_profiles(db, profiles, replace_existing=args.replace)
    logger.info("Inserted %d profiles", inserted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
