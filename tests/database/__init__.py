"""Database tests against disposable databases.

Covers:
- Schema provisioning (derive-from-model, apply-migrations, drift, ledger)
- Repository pattern (RecordRepository operations)
- Alembic migration smoke tests (PostgreSQL only)
- Sample data seeding
"""
