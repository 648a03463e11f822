"""User entity - wallet with ownership counters."""

from sqlalchemy import BigInteger
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """User represents a wallet that has sent, received or been approved for tokens.

    Counters satisfy total_tokens_owned == total_tokens_received - total_tokens_sent.
    """

    __tablename__ = "users"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=42)
    address: str = Field(max_length=42)
    total_tokens_owned: int = Field(default=0, sa_type=BigInteger)
    total_tokens_sent: int = Field(default=0, sa_type=BigInteger)
    total_tokens_received: int = Field(default=0, sa_type=BigInteger)
    first_transaction_timestamp: int = Field(default=0, sa_type=BigInteger)
    first_transaction_block_number: int = Field(default=0, sa_type=BigInteger)
