#!/usr/bin/env python3
"""
Database Seeding for Daily Drop

Usage:
    python -m dailydrop.seed                     # Seed questions if the table is empty
    SEED_DEMO_USER=true python -m dailydrop.seed # Also create a demo user

Behavior:
    - If NO questions exist: inserts DEFAULT_QUESTIONS in order
    - If questions exist: does nothing (the pool is append-only)
    - SEED_DEMO_USER=true: creates the demo user if missing
    - Safe to run multiple times (idempotent)
"""

import os

from dailydrop.database import SessionLocal, init_db
from dailydrop.models import DEFAULT_QUESTIONS, Question, User


# Demo user - only created when SEED_DEMO_USER=true
DEMO_USER = {
    "id": "demo-user",
    "username": "demo",
    "email": "demo@dailydrop.local",
    "first_name": "Demo",
    "last_name": "User",
}


# =============================================================================
# SEEDING FUNCTIONS
# =============================================================================


def seed_questions(db, questions=None) -> int:
    """
    Insert the built-in question pool if no questions exist.
    Returns count of questions created.
    """
    questions = questions or DEFAULT_QUESTIONS
    question_count = db.query(Question).count()

    if question_count > 0:
        print(f"  [SKIP] {question_count} question(s) already exist")
        return 0

    for text in questions:
        db.add(Question(text=text, is_active=True, category="general"))
    print(f"  [CREATE] {len(questions)} questions")
    return len(questions)


def seed_demo_user(db) -> bool:
    """Create the demo user if missing. Returns True if created."""
    if db.query(User).filter(User.id == DEMO_USER["id"]).first():
        print(f"  [SKIP] Demo user exists: {DEMO_USER['username']}")
        return False

    print(f"  [CREATE] Demo user: {DEMO_USER['username']}")
    db.add(User(**DEMO_USER))
    return True


def main():
    """Main seeding entry point."""
    print("=" * 60)
    print("DAILY DROP - DATABASE SEEDING")
    print("=" * 60)

    seed_demo = os.getenv("SEED_DEMO_USER", "false").lower() == "true"

    init_db()
    db = SessionLocal()
    try:
        print("Phase 1: Questions")
        created = seed_questions(db)

        if seed_demo:
            print("\nPhase 2: Demo User")
            seed_demo_user(db)
        else:
            print("\nPhase 2: Demo User [SKIPPED - set SEED_DEMO_USER=true to enable]")

        db.commit()

        print("\n" + "=" * 60)
        print("SEEDING COMPLETE")
        print("=" * 60)
        if created:
            print(f"Created {created} question(s)")
        else:
            print("No questions added")

    except Exception as e:
        db.rollback()
        print(f"\n[ERROR] Seeding failed: {e}")
        raise

    finally:
        db.close()


if __name__ == "__main__":
    main()
