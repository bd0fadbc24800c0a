"""Idempotent seed data creation.

Running seed_all() twice produces the same state: records carry stable ids,
so a second save updates the existing rows instead of inserting new ones.
"""
from __future__ import annotations

import logging

from persistence_demo.models import Record
from persistence_demo.repository import RecordRepository
from persistence_demo.seeding.fixtures import SEED_RECORDS

logger = logging.getLogger(__name__)


async def seed_records(repository: RecordRepository) -> int:
    """Upsert the sample records in a single transaction.

    Returns:
        Number of records upserted.
    """
    records = [
        Record(id=str(item["id"]), name=str(item["name"]), age=int(item["age"]))  # type: ignore[call-overload]
        for item in SEED_RECORDS
    ]
    await repository.save_all(records)
    logger.info("Seeded %d records", len(records))
    return len(records)


async def seed_all(repository: RecordRepository) -> dict[str, int]:
    """Run all seed operations idempotently.

    Returns:
        Dict of seeding results: {resource_type: count_seeded}.
    """
    results = {"records": await seed_records(repository)}
    logger.info("Seed complete: %s", results)
    return results
