"""create_ledger_tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2025-11-03 14:12:41.208113

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create contracts, tokens, users, metadata, event log and system state tables."""
    op.create_table(
        "contracts",
        sa.Column("id", sa.String(length=42), primary_key=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("symbol", sa.String(), nullable=True),
        sa.Column("total_supply", sa.BigInteger(), nullable=False),
        sa.Column("created_at_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("created_at_block_number", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "tokens",
        sa.Column("id", sa.String(length=122), primary_key=True),
        sa.Column("contract", sa.String(length=42), nullable=False),
        sa.Column("token_id", sa.String(length=78), nullable=False),
        sa.Column("owner", sa.String(length=42), nullable=False),
        sa.Column("approved", sa.String(length=42), nullable=True),
        sa.Column("token_uri", sa.String(), nullable=True),
        sa.Column("metadata_id", sa.String(length=131), nullable=True),
        sa.Column("created_at_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("created_at_block_number", sa.BigInteger(), nullable=False),
        sa.Column("updated_at_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("updated_at_block_number", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_tokens_contract", "tokens", ["contract"])
    op.create_index("ix_tokens_owner", "tokens", ["owner"])

    op.create_table(
        "token_metadata",
        sa.Column("id", sa.String(length=131), primary_key=True),
        sa.Column("token", sa.String(length=122), nullable=False),
        sa.Column("uri", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("image", sa.String(), nullable=True),
        sa.Column("external_url", sa.String(), nullable=True),
        sa.Column("attributes", sa.JSON(), nullable=True),
    )
    op.create_index("ix_token_metadata_token", "token_metadata", ["token"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=42), primary_key=True),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("total_tokens_owned", sa.BigInteger(), nullable=False),
        sa.Column("total_tokens_sent", sa.BigInteger(), nullable=False),
        sa.Column("total_tokens_received", sa.BigInteger(), nullable=False),
        sa.Column("first_transaction_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("first_transaction_block_number", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "transfers",
        sa.Column("id", sa.String(length=80), primary_key=True),
        sa.Column("token", sa.String(length=122), nullable=False),
        sa.Column("from_user", sa.String(length=42), nullable=False),
        sa.Column("to_user", sa.String(length=42), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("log_index", sa.Integer(), nullable=False),
        sa.Column("transaction_hash", sa.String(length=66), nullable=False),
        sa.Column("gas_price", sa.BigInteger(), nullable=True),
        sa.Column("gas_used", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_transfers_token", "transfers", ["token"])
    op.create_index("ix_transfers_from_user", "transfers", ["from_user"])
    op.create_index("ix_transfers_to_user", "transfers", ["to_user"])
    op.create_index("ix_transfers_block_number", "transfers", ["block_number"])

    op.create_table(
        "approvals",
        sa.Column("id", sa.String(length=80), primary_key=True),
        sa.Column("token", sa.String(length=122), nullable=False),
        sa.Column("owner", sa.String(length=42), nullable=False),
        sa.Column("approved", sa.String(length=42), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("log_index", sa.Integer(), nullable=False),
        sa.Column("transaction_hash", sa.String(length=66), nullable=False),
    )
    op.create_index("ix_approvals_token", "approvals", ["token"])

    op.create_table(
        "approvals_for_all",
        sa.Column("id", sa.String(length=80), primary_key=True),
        sa.Column("contract", sa.String(length=42), nullable=False),
        sa.Column("owner", sa.String(length=42), nullable=False),
        sa.Column("operator", sa.String(length=42), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("log_index", sa.Integer(), nullable=False),
        sa.Column("transaction_hash", sa.String(length=66), nullable=False),
    )
    op.create_index("ix_approvals_for_all_contract", "approvals_for_all", ["contract"])

    op.create_table(
        "system_state",
        sa.Column("key", sa.String(length=255), primary_key=True),
        sa.Column("state_value", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Drop all ledger tables."""
    op.drop_table("system_state")
    op.drop_table("approvals_for_all")
    op.drop_table("approvals")
    op.drop_table("transfers")
    op.drop_table("users")
    op.drop_table("token_metadata")
    op.drop_table("tokens")
    op.drop_table("contracts")
