#!/usr/bin/env python3
"""
Seed the question bank from a JSON file: [{question, answers: [{content, isCorrect}], explanation, fields, topics, levels}].
Entries that look like duplicates of stored questions (or of earlier entries in the file) are skipped.
Run from backend: python scripts/seed_questions.py path/to/questions.json [--allow-duplicates]
"""
import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure backend is on path and quizbank can load
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

logger = logging.getLogger("seed_questions")


def _valid(record: dict) -> bool:
    answers = record.get("answers")
    if not (record.get("question") or "").strip() or not isinstance(answers, list) or not answers:
        return False
    return any(isinstance(a, dict) and a.get("isCorrect") for a in answers)


def seed_questions(records: list[dict], db, skip_duplicates: bool = True) -> tuple[int, int]:
    """Insert valid records; return (inserted, skipped)."""
    from quizbank.api.questions import load_corpus
    from quizbank.models.question import Question
    from quizbank.services.duplicates import find_similar

    corpus = load_corpus(db) if skip_duplicates else []
    inserted = skipped = 0
    for i, record in enumerate(records):
        if not _valid(record):
            logger.warning("Record %s skipped: needs question text and at least one correct answer", i)
            skipped += 1
            continue
        if skip_duplicates:
            similar = find_similar(record["question"], corpus)
            if similar:
                logger.info("Record %s skipped: similar to %s (%.2f)", i, similar[0]["id"], similar[0]["similarity"])
                skipped += 1
                continue
        q = Question(
            question=record["question"].strip(),
            answers=[{"content": a.get("content", ""), "isCorrect": bool(a.get("isCorrect"))} for a in record["answers"]],
            explanation=record.get("explanation"),
            fields=list(record.get("fields") or []),
            topics=list(record.get("topics") or []),
            levels=list(record.get("levels") or []),
        )
        db.add(q)
        db.flush()
        corpus.append({"id": str(q.id), "question": q.question})
        inserted += 1
    db.commit()
    return inserted, skipped


def main():
    parser = argparse.ArgumentParser(description="Seed the question bank from JSON.")
    parser.add_argument("path", type=Path)
    parser.add_argument("--allow-duplicates", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    records = json.loads(args.path.read_text(encoding="utf-8"))
    if not isinstance(records, list):
        logger.error("Expected a JSON array of questions in %s", args.path)
        return 1

    from quizbank.database import SessionLocal, init_sqlite_db
    init_sqlite_db()
    db = SessionLocal()
    try:
        inserted, skipped = seed_questions(records, db, skip_duplicates=not args.allow_duplicates)
    finally:
        db.close()
    logger.info("Seeded %s question(s), skipped %s", inserted, skipped)
    return 0


if __name__ == "__main__":
    sys.exit(main())
