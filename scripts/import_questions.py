#!/usr/bin/env python3
"""
Question Import Script for Daily Drop

Usage:
    python scripts/import_questions.py path/to/questions.csv

CSV columns expected:
    - text
    - category (optional, defaults to "general")

Behavior:
    - Appends questions whose text is not already in the pool
    - Never edits, reorders or deletes existing questions (drops keep their
      own copy of the wording, and the daily rotation depends on pool order)
    - Idempotent: safe to run multiple times
"""

import csv
import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dailydrop.database import SessionLocal
from dailydrop.models import Question


def clean(value: str) -> str:
    """Clean string: strip whitespace, return None if empty."""
    if not value:
        return None
    cleaned = value.strip()
    return cleaned if cleaned else None


def read_questions(path: str) -> list:
    """Read (text, category) rows from the CSV, skipping blank texts."""
    rows = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            text = clean(row.get("text"))
            if not text:
                continue
            rows.append((text, clean(row.get("category")) or "general"))
    return rows


def import_questions(db, rows) -> dict:
    """Append unseen questions. Returns counts of created and skipped rows."""
    existing = {q.text for q in db.query(Question.text).all()}
    stats = {"created": 0, "skipped": 0}

    for text, category in rows:
        if text in existing:
            stats["skipped"] += 1
            continue
        db.add(Question(text=text, category=category, is_active=True))
        existing.add(text)
        stats["created"] += 1

    return stats


def main():
    if len(sys.argv) != 2:
        print("Usage: python scripts/import_questions.py path/to/questions.csv")
        sys.exit(1)

    rows = read_questions(sys.argv[1])
    print(f"Read {len(rows)} question(s) from {sys.argv[1]}")

    db = SessionLocal()
    try:
        stats = import_questions(db, rows)
        db.commit()
    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    print(f"  + Created: {stats['created']}")
    print(f"  - Skipped (already in pool): {stats['skipped']}")


if __name__ == "__main__":
    main()
