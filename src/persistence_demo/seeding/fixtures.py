"""Canonical sample records with stable IDs across all runs.

Stable IDs make seeding an upsert: running it twice leaves the same rows.
"""
from __future__ import annotations

# ---------------------------------------------------------------------------
# Sample record UUIDs
# ---------------------------------------------------------------------------

CHRIS_ID: str = "00000000-0000-0000-0000-000000000001"
ALEX_ID: str  = "00000000-0000-0000-0000-000000000002"
SAM_ID: str   = "00000000-0000-0000-0000-000000000003"

SEED_RECORDS: list[dict[str, object]] = [
    {"id": CHRIS_ID, "name": "chris", "age": 34},
    {"id": ALEX_ID,  "name": "alex",  "age": 27},
    {"id": SAM_ID,   "name": "sam",   "age": 41},
]
