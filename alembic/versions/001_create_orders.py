"""001: create orders table and the updated_at trigger function

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE orders (
            id                  BIGSERIAL       PRIMARY KEY,
            display_code        VARCHAR(32)     NOT NULL UNIQUE,
            client_id           VARCHAR(64)     NOT NULL,
            writer_id           VARCHAR(64),
            manager_id          VARCHAR(64),
            title               VARCHAR(255)    NOT NULL,
            work_type           VARCHAR(20)     NOT NULL,
            pages               INT             NOT NULL DEFAULT 0,
            slides              INT             NOT NULL DEFAULT 0,
            problems            INT             NOT NULL DEFAULT 0,
            total_amount        BIGINT          NOT NULL,
            writer_earnings     BIGINT          NOT NULL DEFAULT 0,
            manager_assign_fee  BIGINT          NOT NULL DEFAULT 0,
            manager_submit_fee  BIGINT          NOT NULL DEFAULT 0,
            platform_margin     BIGINT          NOT NULL DEFAULT 0,
            pricing_review      BOOLEAN         NOT NULL DEFAULT FALSE,
            payment_confirmed   BOOLEAN         NOT NULL DEFAULT FALSE,
            payout_round        INT             NOT NULL DEFAULT 1,
            payment_reference   VARCHAR(128),
            status              VARCHAR(30)     NOT NULL DEFAULT 'pending',
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            assigned_at         TIMESTAMPTZ,
            delivered_at        TIMESTAMPTZ,
            approved_at         TIMESTAMPTZ,
            paid_at             TIMESTAMPTZ,
            CONSTRAINT ck_orders_total_gt_0         CHECK (total_amount > 0),
            CONSTRAINT ck_orders_units_gte_0        CHECK (pages >= 0 AND slides >= 0 AND problems >= 0),
            CONSTRAINT ck_orders_quote_gte_0        CHECK (
                writer_earnings >= 0 AND manager_assign_fee >= 0
                AND manager_submit_fee >= 0 AND platform_margin >= 0
            ),
            CONSTRAINT ck_orders_payout_round_gte_1 CHECK (payout_round >= 1),
            CONSTRAINT ck_orders_work_type CHECK (work_type IN ('ordinary', 'technical')),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('pending', 'approved', 'assigned', 'in_progress',
                           'manager_review', 'editing', 'delivered',
                           'accepted_by_client', 'paid', 'completed',
                           'revision_pending', 'cancelled')
            ),
            CONSTRAINT ck_orders_assigned_parties CHECK (
                status IN ('pending', 'approved', 'cancelled')
                OR (writer_id IS NOT NULL AND manager_id IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_writer_status ON orders (writer_id, status);")
    op.execute("CREATE INDEX idx_orders_client ON orders (client_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
        BEFORE UPDATE ON orders
        FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_orders_updated_at ON orders;")
    op.execute("DROP TABLE IF EXISTS orders;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
