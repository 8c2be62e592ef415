"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            name                VARCHAR(64)     NOT NULL,
            email               VARCHAR(255)    NOT NULL,
            phone               VARCHAR(32),
            role                VARCHAR(10)     NOT NULL DEFAULT 'buyer',
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            address_street      VARCHAR(255),
            address_city        VARCHAR(100),
            address_state       VARCHAR(100),
            address_postal_code VARCHAR(20),
            address_country     VARCHAR(64)     DEFAULT 'India',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email   UNIQUE (email),
            CONSTRAINT ck_users_role    CHECK (role IN ('seller', 'buyer', 'admin'))
        );
    """)
    op.execute("CREATE INDEX idx_users_email ON users (email);")
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE users IS 'Marketplace users: identity, role and profile address';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
