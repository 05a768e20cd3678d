"""004: create ledger_entries table (append-only)

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            order_id        BIGINT          NOT NULL REFERENCES orders(id),
            amount          BIGINT          NOT NULL,
            reason          VARCHAR(30)     NOT NULL,
            balance_after   BIGINT          NOT NULL,
            idempotency_key VARCHAR(128),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_ledger_idempotency_key UNIQUE (idempotency_key),
            CONSTRAINT ck_ledger_amount_ne_0     CHECK (amount <> 0),
            CONSTRAINT ck_ledger_reason CHECK (
                reason IN ('assignment-fee', 'submission-fee', 'writer-payout',
                           'platform-margin', 'revision-clawback')
            )
        );
    """)
    op.execute("CREATE INDEX idx_ledger_user ON ledger_entries (user_id, id DESC);")
    op.execute("CREATE INDEX idx_ledger_order ON ledger_entries (order_id, id);")
    # Append-only: refuse UPDATE and DELETE at the database level
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_ledger_append_only()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'ledger_entries is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_ledger_append_only
        BEFORE UPDATE OR DELETE ON ledger_entries
        FOR EACH ROW EXECUTE FUNCTION fn_ledger_append_only();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_ledger_append_only ON ledger_entries;")
    op.execute("DROP FUNCTION IF EXISTS fn_ledger_append_only();")
    op.execute("DROP TABLE IF EXISTS ledger_entries;")
