"""Append-only event log entities.

Each record is keyed by "<txHash>-<logIndex>" and references other entities by key.
"""

from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field, SQLModel


class Transfer(SQLModel, table=True):
    """Transfer records one ERC-721 Transfer log (mint, burn or regular transfer)."""

    __tablename__ = "transfers"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=80)
    token: str = Field(max_length=122, index=True)
    from_user: str = Field(max_length=42, index=True)
    to_user: str = Field(max_length=42, index=True)
    timestamp: int = Field(sa_type=BigInteger)
    block_number: int = Field(sa_type=BigInteger, index=True)
    log_index: int
    transaction_hash: str = Field(max_length=66)
    gas_price: Optional[int] = Field(default=None, sa_type=BigInteger)
    gas_used: int = Field(default=0, sa_type=BigInteger)


class Approval(SQLModel, table=True):
    """Approval records a single-token approval change."""

    __tablename__ = "approvals"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=80)
    token: str = Field(max_length=122, index=True)
    owner: str = Field(max_length=42)
    approved: str = Field(max_length=42)
    timestamp: int = Field(sa_type=BigInteger)
    block_number: int = Field(sa_type=BigInteger)
    log_index: int
    transaction_hash: str = Field(max_length=66)


class ApprovalForAll(SQLModel, table=True):
    """ApprovalForAll records an operator approval toggle for a whole collection."""

    __tablename__ = "approvals_for_all"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=80)
    contract: str = Field(max_length=42, index=True)
    owner: str = Field(max_length=42)
    operator: str = Field(max_length=42)
    approved: bool
    timestamp: int = Field(sa_type=BigInteger)
    block_number: int = Field(sa_type=BigInteger)
    log_index: int
    transaction_hash: str = Field(max_length=66)
