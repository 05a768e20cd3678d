"""005: create user_balances projection table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # No balance >= 0 check: a claw-back may drive a writer negative
    op.execute("""
        CREATE TABLE user_balances (
            user_id         VARCHAR(64)     PRIMARY KEY,
            balance         BIGINT          NOT NULL DEFAULT 0,
            lifetime_earned BIGINT          NOT NULL DEFAULT 0,
            version         BIGINT          NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_user_balances_lifetime_gte_0 CHECK (lifetime_earned >= 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_balances;")
