"""002: create order_status_logs table (append-only)

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE order_status_logs (
            id              BIGSERIAL       PRIMARY KEY,
            order_id        BIGINT          NOT NULL REFERENCES orders(id),
            old_status      VARCHAR(30)     NOT NULL,
            new_status      VARCHAR(30)     NOT NULL,
            actor_id        VARCHAR(64)     NOT NULL,
            actor_role      VARCHAR(20)     NOT NULL,
            note            VARCHAR(1000),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_status_logs_actor_role CHECK (
                actor_role IN ('client', 'writer', 'manager', 'admin', 'system')
            )
        );
    """)
    op.execute("CREATE INDEX idx_status_logs_order ON order_status_logs (order_id, id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_status_logs;")
