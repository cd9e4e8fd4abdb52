"""
Seed the lessons collection.

    python seed.py                  # insert the sample catalogue
    python seed.py --file data.json --drop
"""

import json
import argparse
import logging
from typing import Any, Dict, List

from dotenv import load_dotenv
from pydantic import ValidationError
from pymongo.database import Database

from database import connect_database
from schemas import Lesson

logger = logging.getLogger(__name__)

SAMPLE_LESSONS: List[Dict[str, Any]] = [
    {"topic": "Math", "price": 100, "location": "Hendon", "space": 5, "desc": "Algebra and geometry basics"},
    {"topic": "English", "price": 90, "location": "Colindale", "space": 5, "desc": "Reading and creative writing"},
    {"topic": "Science", "price": 110, "location": "Brent Cross", "space": 5, "desc": "Hands-on experiments"},
    {"topic": "Music", "price": 80, "location": "Golders Green", "space": 5, "desc": "Piano for beginners"},
    {"topic": "Art", "price": 70, "location": "Hendon", "space": 5, "desc": "Drawing and painting"},
    {"topic": "Intro to C++", "price": 120, "location": "Mill Hill", "space": 5, "desc": "First steps in programming"},
    {"topic": "Python", "price": 120, "location": "Colindale", "space": 5, "desc": "Scripting for kids"},
    {"topic": "Chess", "price": 60, "location": "Edgware", "space": 5, "desc": "Openings and tactics"},
    {"topic": "French", "price": 85, "location": "Brent Cross", "space": 5, "desc": "Conversational French"},
    {"topic": "Drama", "price": 75, "location": "Golders Green", "space": 5, "desc": "Acting and stagecraft"},
]


def load_lessons(raw: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate raw entries; raises pydantic.ValidationError on the first bad one."""
    return [Lesson(**entry).model_dump(exclude_none=True) for entry in raw]


def seed(db: Database, lessons: List[Dict[str, Any]], drop: bool = False) -> int:
    collection = db["lessons"]
    if drop:
        collection.delete_many({})
    if not lessons:
        return 0
    result = collection.insert_many(lessons)
    return len(result.inserted_ids)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Insert lessons into the lessons collection")
    parser.add_argument("--file", help="JSON file holding a list of lessons")
    parser.add_argument("--drop", action="store_true", help="remove existing lessons first")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    raw = SAMPLE_LESSONS
    if args.file:
        with open(args.file, encoding="utf-8") as fh:
            raw = json.load(fh)

    try:
        lessons = load_lessons(raw)
    except ValidationError as e:
        logger.error("Invalid lesson data: %s", e)
        return 1

    client, db = connect_database()
    try:
        count = seed(db, lessons, drop=args.drop)
    finally:
        client.close()
    logger.info("Inserted %d lessons into %s", count, db.name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
