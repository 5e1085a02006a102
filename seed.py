"""
Seed or empty the database from the JSON fixtures in data/.

    python seed.py seed                 # every collection that has a fixture
    python seed.py seed user project    # only these
    python seed.py unseed               # empty every collection
"""

import argparse
import json
import logging
import os
from datetime import datetime, timezone

from bson import ObjectId

from database import get_db
from schemas import COLLECTIONS, USER
from security import hash_password

logger = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")

REFERENCE_FIELDS = [
    "_id",
    "client_id",
    "freelancer_id",
    "project_id",
    "user_id",
    "sender_id",
    "receiver_id",
    "project_feature_id",
    "service_id",
    "reviewer_id",
]


def fixture_path(collection: str) -> str:
    return os.path.join(DATA_DIR, f"{collection}.json")


def load_fixture(collection: str) -> list:
    with open(fixture_path(collection), encoding="utf-8") as f:
        return json.load(f)


def prepare(collection: str, docs: list) -> list:
    """ObjectId references, hashed passwords and timestamps for raw fixture documents."""
    now = datetime.now(timezone.utc)
    prepared = []
    for raw in docs:
        doc = dict(raw)
        for field in REFERENCE_FIELDS:
            if isinstance(doc.get(field), str):
                doc[field] = ObjectId(doc[field])
        for freelancer in doc.get("assigned_freelancer") or []:
            freelancer["_id"] = ObjectId(freelancer["_id"])
        if collection == USER and doc.get("password"):
            doc["password"] = hash_password(doc["password"])
        doc.setdefault("created_at", now)
        doc.setdefault("updated_at", now)
        prepared.append(doc)
    return prepared


def seed(collections=None) -> dict:
    if not collections:
        collections = [c for c in COLLECTIONS if os.path.exists(fixture_path(c))]
    counts = {}
    for collection in collections:
        if not os.path.exists(fixture_path(collection)):
            logger.warning("No fixture for %s, skipping", collection)
            continue
        docs = prepare(collection, load_fixture(collection))
        if docs:
            get_db()[collection].insert_many(docs)
        counts[collection] = len(docs)
        logger.info("Seeded %s: %d documents", collection, len(docs))
    return counts


def unseed(collections=None) -> dict:
    counts = {}
    for collection in collections or COLLECTIONS:
        counts[collection] = get_db()[collection].delete_many({}).deleted_count
        logger.info("Emptied %s: %d documents", collection, counts[collection])
    return counts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed or empty the Worklytic database")
    parser.add_argument("action", choices=["seed", "unseed"])
    parser.add_argument("collections", nargs="*", help=f"any of: {', '.join(COLLECTIONS)}")
    args = parser.parse_args(argv)

    unknown = [c for c in args.collections if c not in COLLECTIONS]
    if unknown:
        parser.error(f"unknown collection(s): {', '.join(unknown)}")

    if args.action == "seed":
        seed(args.collections)
    else:
        unseed(args.collections)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
