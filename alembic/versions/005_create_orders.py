"""005: create orders table

Revision ID: 005
Revises: 004
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                          VARCHAR(32)     PRIMARY KEY,
            order_number                VARCHAR(20)     NOT NULL,
            listing_id                  VARCHAR(32)     NOT NULL REFERENCES listings (id),
            seller_id                   VARCHAR(64)     NOT NULL,
            buyer_id                    VARCHAR(64)     NOT NULL,
            direction                   VARCHAR(20)     NOT NULL,
            quantity                    INT             NOT NULL,
            agreed_price_per_unit_cents BIGINT          NOT NULL,
            total_amount_cents          BIGINT          NOT NULL,
            commission_amount_cents     BIGINT          NOT NULL,
            seller_net_amount_cents     BIGINT          NOT NULL,
            buyer_payment_amount_cents  BIGINT          NOT NULL,
            commission_rate_bps         INT             NOT NULL,
            payment_method              VARCHAR(20)     NOT NULL,
            delivery_address            JSONB           NOT NULL,
            seller_location             JSONB,
            buyer_location              JSONB,
            expected_delivery_at        TIMESTAMPTZ,
            notes                       TEXT,
            order_status                VARCHAR(20)     NOT NULL DEFAULT 'processing',
            delivery_status             VARCHAR(20)     NOT NULL DEFAULT 'pending',
            payment_status              VARCHAR(20)     NOT NULL DEFAULT 'pending',
            tracking_number             VARCHAR(64),
            shipping_provider           VARCHAR(64),
            delivered_at                TIMESTAMPTZ,
            cancelled_at                TIMESTAMPTZ,
            cancellation_reason         TEXT,
            rating                      SMALLINT,
            review                      TEXT,
            reviewed_at                 TIMESTAMPTZ,
            version                     INT             NOT NULL DEFAULT 1,
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_order_number       UNIQUE (order_number),
            CONSTRAINT uq_orders_listing_id         UNIQUE (listing_id),
            CONSTRAINT ck_orders_order_number_fmt   CHECK (order_number ~ '^ORD-[0-9]{8}-[0-9]{4,}$'),
            CONSTRAINT ck_orders_quantity           CHECK (quantity > 0),
            CONSTRAINT ck_orders_split              CHECK (
                commission_amount_cents + seller_net_amount_cents = total_amount_cents
            ),
            CONSTRAINT ck_orders_buyer_pays_total   CHECK (buyer_payment_amount_cents = total_amount_cents),
            CONSTRAINT ck_orders_commission_rate    CHECK (commission_rate_bps BETWEEN 0 AND 10000),
            CONSTRAINT ck_orders_order_status       CHECK (
                order_status IN ('processing', 'completed', 'cancelled', 'refunded')
            ),
            CONSTRAINT ck_orders_delivery_status    CHECK (
                delivery_status IN ('pending', 'confirmed', 'shipped', 'out_for_delivery',
                                    'delivered', 'cancelled')
            ),
            CONSTRAINT ck_orders_payment_status     CHECK (
                payment_status IN ('pending', 'paid', 'failed', 'refunded')
            ),
            CONSTRAINT ck_orders_rating             CHECK (rating IS NULL OR rating BETWEEN 1 AND 5)
        );
    """)
    op.execute("CREATE INDEX idx_orders_seller ON orders (seller_id, id DESC);")
    op.execute("CREATE INDEX idx_orders_buyer ON orders (buyer_id, id DESC);")
    op.execute("CREATE INDEX idx_orders_status_created ON orders (order_status, created_at);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE orders IS 'Settled orders: one per settled listing, financials immutable';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
