"""003: create listings table

Revision ID: 003
Revises: 002
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE listings (
            id                      VARCHAR(32)     PRIMARY KEY,
            owner_id                VARCHAR(64)     NOT NULL,
            title                   VARCHAR(100)    NOT NULL,
            description             TEXT            NOT NULL DEFAULT '',
            category                VARCHAR(20)     NOT NULL DEFAULT 'other',
            direction               VARCHAR(20)     NOT NULL,
            price_per_unit_cents    BIGINT          NOT NULL,
            total_quantity          INT             NOT NULL,
            status                  VARCHAR(24)     NOT NULL DEFAULT 'active',
            winning_bidder_id       VARCHAR(64),
            winning_amount_cents    BIGINT,
            winning_accepted_at     TIMESTAMPTZ,
            settled_at              TIMESTAMPTZ,
            commission_earned_cents BIGINT          NOT NULL DEFAULT 0,
            expires_at              TIMESTAMPTZ,
            version                 INT             NOT NULL DEFAULT 1,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listings_direction CHECK (direction IN ('offer_to_sell', 'offer_to_buy')),
            CONSTRAINT ck_listings_status    CHECK (
                status IN ('active', 'settled_as_sale', 'settled_as_purchase', 'expired', 'cancelled')
            ),
            CONSTRAINT ck_listings_category  CHECK (
                category IN ('vegetables', 'fruits', 'grains', 'dairy', 'poultry', 'other')
            ),
            CONSTRAINT ck_listings_price_positive    CHECK (price_per_unit_cents > 0),
            CONSTRAINT ck_listings_quantity_positive CHECK (total_quantity > 0),
            CONSTRAINT ck_listings_commission_gte_0  CHECK (commission_earned_cents >= 0),
            CONSTRAINT ck_listings_winner_iff_settled CHECK (
                (status IN ('settled_as_sale', 'settled_as_purchase'))
                = (winning_bidder_id IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_listings_owner ON listings (owner_id, created_at DESC);")
    op.execute("CREATE INDEX idx_listings_winner ON listings (winning_bidder_id);")
    op.execute("""
        CREATE INDEX idx_listings_expiring
        ON listings (expires_at)
        WHERE status = 'active' AND expires_at IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_listings_updated_at
            BEFORE UPDATE ON listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE listings IS 'Produce listings: aggregate root, version column serializes bid writes';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS listings CASCADE;")
