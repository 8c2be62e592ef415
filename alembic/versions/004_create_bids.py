"""004: create bids table

Revision ID: 004
Revises: 003
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id                  VARCHAR(32)     PRIMARY KEY,
            listing_id          VARCHAR(32)     NOT NULL REFERENCES listings (id),
            bidder_id           VARCHAR(64)     NOT NULL,
            amount_cents        BIGINT          NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            delivery_address    JSONB           NOT NULL,
            payment_method      VARCHAR(20)     NOT NULL DEFAULT 'cash_on_delivery',
            submitted_at        TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_status          CHECK (status IN ('pending', 'accepted', 'rejected')),
            CONSTRAINT ck_bids_amount_positive CHECK (amount_cents > 0),
            CONSTRAINT ck_bids_payment_method  CHECK (
                payment_method IN ('cash_on_delivery', 'bank_transfer', 'upi', 'card')
            )
        );
    """)
    op.execute("CREATE INDEX idx_bids_listing ON bids (listing_id, submitted_at);")
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id);")
    # One pending bid per bidder per listing; one accepted bid per listing.
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_one_pending_per_bidder
        ON bids (listing_id, bidder_id)
        WHERE status = 'pending';
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_one_accepted_per_listing
        ON bids (listing_id)
        WHERE status = 'accepted';
    """)
    op.execute("""
        CREATE TRIGGER trg_bids_updated_at
            BEFORE UPDATE ON bids
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
