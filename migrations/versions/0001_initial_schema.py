"""Initial schema - users and numbering sequences.

Revision ID: 0001
Revises:     (none)
Create Date: 2026-10-18
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op


def upgrade() -> None:
    # ---------------------------------------------------------------------- #
    # Enable pgcrypto for gen_random_uuid()                                   #
    # ---------------------------------------------------------------------- #
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ------------------------------------------------------------------ #
    # users                                                                #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE users (
            id          UUID          NOT NULL DEFAULT gen_random_uuid(),
            user_code   VARCHAR(20)   NOT NULL,
            name        VARCHAR(200)  NOT NULL,
            email       VARCHAR(200),
            department  VARCHAR(100),
            position    VARCHAR(100),
            role        VARCHAR(20)   NOT NULL,   -- ADMIN | FINANCE | SPV | STAFF
            is_active   BOOLEAN       NOT NULL DEFAULT TRUE,
            created_at  TIMESTAMP     NOT NULL DEFAULT now(),
            CONSTRAINT pk_users PRIMARY KEY (id),
            CONSTRAINT uq_users_user_code UNIQUE (user_code),
            CONSTRAINT ck_users_role CHECK (role IN ('ADMIN', 'FINANCE', 'SPV', 'STAFF'))
        )
    """)

    # ------------------------------------------------------------------ #
    # numbering_sequences                                                  #
    # next_number is only ever advanced by                                 #
    #   UPDATE ... SET next_number = next_number + 1 ... RETURNING         #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE numbering_sequences (
            id              UUID          NOT NULL DEFAULT gen_random_uuid(),
            sequence_code   VARCHAR(20)   NOT NULL,
            prefix_template VARCHAR(255)  NOT NULL DEFAULT '',
            next_number     INT           NOT NULL DEFAULT 1,
            description     TEXT          NOT NULL DEFAULT '',
            is_active       BOOLEAN       NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMP     NOT NULL DEFAULT now(),
            updated_at      TIMESTAMP     NOT NULL DEFAULT now(),
            CONSTRAINT pk_numbering_sequences PRIMARY KEY (id),
            CONSTRAINT uq_numbering_sequences_code UNIQUE (sequence_code),
            CONSTRAINT ck_numbering_sequences_next_number CHECK (next_number >= 1)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS numbering_sequences CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
