"""003: create bids table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id              BIGSERIAL       PRIMARY KEY,
            order_id        BIGINT          NOT NULL REFERENCES orders(id),
            writer_id       VARCHAR(64)     NOT NULL,
            amount          BIGINT          NOT NULL,
            message         TEXT            NOT NULL DEFAULT '',
            status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bids_order_writer UNIQUE (order_id, writer_id),
            CONSTRAINT ck_bids_amount_gt_0  CHECK (amount > 0),
            CONSTRAINT ck_bids_status CHECK (status IN ('pending', 'accepted', 'rejected'))
        );
    """)
    # At most one accepted bid per order
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_one_accepted
        ON bids (order_id) WHERE status = 'accepted';
    """)
    op.execute("""
        CREATE TRIGGER trg_bids_updated_at
        BEFORE UPDATE ON bids
        FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_bids_updated_at ON bids;")
    op.execute("DROP TABLE IF EXISTS bids;")
