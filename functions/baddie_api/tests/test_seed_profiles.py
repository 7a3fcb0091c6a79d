import importlib.util
import json
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from baddie_api.db import FameLevel, InMemoryDbClient

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "seed_profiles.py"


def load_script():
    spec = importlib.util.spec_from_file_location("seed_profiles", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


PROFILES = [
    {
        "name": "Ada Lovelace",
        "category": "science",
        "fameLevel": "famous",
        "achievements": ["First published algorithm"],
        "shortBio": "Mathematician and writer.",
    },
    {"name": "Hedy Lamarr", "category": "science", "fameLevel": "hidden"},
]


class SeedProfilesTests(unittest.TestCase):
    def setUp(self):
        self.seed = load_script()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "profiles.json"

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, payload):
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def test_seed_inserts_profiles(self):
        self.write(PROFILES)
        db = InMemoryDbClient()
        inserted = self.seed.seed_profiles(db, self.seed.load_profiles(self.path))
        self.assertEqual(inserted, 2)
        by_name = {p.name: p for p in db.list_profiles()}
        self.assertEqual(by_name["Ada Lovelace"].short_bio, "Mathematician and writer.")
        self.assertEqual(by_name["Hedy Lamarr"].fame_level, FameLevel.HIDDEN)

    def test_replace_existing(self):
        self.write(PROFILES)
        db = InMemoryDbClient()
        profiles = self.seed.load_profiles(self.path)
        self.seed.seed_profiles(db, profiles)
        self.seed.seed_profiles(db, profiles, replace_existing=True)
        self.assertEqual(len(db.list_profiles()), 2)

    def test_rejects_invalid_profiles(self):
        self.write([{"name": "Nobody", "category": "misc", "fameLevel": "legendary"}])
        with self.assertRaises(ValidationError):
            self.seed.load_profiles(self.path)

        self.write({"name": "Ada Lovelace"})
        with self.assertRaises(ValueError):
            self.seed.load_profiles(self.path)


if __name__ == "__main__":
    unittest.main()
