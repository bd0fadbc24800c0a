"""make record names unique

Revision ID: 0002_records_name_unique
Revises: 0001_create_records
Create Date: 2022-06-07 09:40:03.117952
"""
from __future__ import annotations

from alembic import op


# revision identifiers, used by Alembic.
revision = "0002_records_name_unique"
down_revision = "0001_create_records"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("records") as batch_op:
        batch_op.create_unique_constraint(op.f("uq_records_name"), ["name"])


def downgrade() -> None:
    with op.batch_alter_table("records") as batch_op:
        batch_op.drop_constraint(op.f("uq_records_name"), type_="unique")
