"""Sample data seeding for persistence_demo.

Provides idempotent creation of a small, stable set of records so a freshly
provisioned database has something to look at.

Usage:
    # From Python (e.g. in a conftest.py fixture):
    from persistence_demo.seeding.seed import seed_all
    await seed_all(app.repository)

    # From shell:
    python -m persistence_demo seed
"""
