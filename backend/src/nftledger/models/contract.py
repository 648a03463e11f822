"""Contract entity - ERC-721 collection with circulating supply."""

from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field, SQLModel


class Contract(SQLModel, table=True):
    """Contract represents an indexed ERC-721 collection keyed by its address."""

    __tablename__ = "contracts"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=42)
    name: Optional[str] = Field(default=None)
    symbol: Optional[str] = Field(default=None)
    total_supply: int = Field(default=0, sa_type=BigInteger)
    created_at_timestamp: int = Field(default=0, sa_type=BigInteger)
    created_at_block_number: int = Field(default=0, sa_type=BigInteger)
