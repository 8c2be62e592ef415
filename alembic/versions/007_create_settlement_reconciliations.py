"""007: create settlement_reconciliations table

Revision ID: 007
Revises: 006
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE settlement_reconciliations (
            id              VARCHAR(32)     PRIMARY KEY,
            listing_id      VARCHAR(32)     NOT NULL,
            bid_id          VARCHAR(32)     NOT NULL,
            acting_user_id  VARCHAR(64)     NOT NULL,
            order_id        VARCHAR(32),
            order_number    VARCHAR(20),
            error           TEXT            NOT NULL,
            status          VARCHAR(10)     NOT NULL DEFAULT 'open',
            resolved_by     VARCHAR(64),
            resolution_note TEXT,
            resolved_at     TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_settlement_reconciliations_status CHECK (status IN ('open', 'resolved'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_settlement_reconciliations_open
        ON settlement_reconciliations (created_at)
        WHERE status = 'open';
    """)
    op.execute(
        "COMMENT ON TABLE settlement_reconciliations IS "
        "'Settlements whose commit outcome was unknown: resolved by an operator';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS settlement_reconciliations CASCADE;")
