"""Token entity - NFT ownership and approval state, plus resolved metadata."""

from typing import Optional

from sqlalchemy import JSON, BigInteger, Column
from sqlmodel import Field, SQLModel


class Token(SQLModel, table=True):
    """Token represents one NFT, keyed by "<contract>-<tokenId>".

    Owner starts as the zero-address sentinel and is overwritten by the first transfer.
    """

    __tablename__ = "tokens"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=122)
    contract: str = Field(max_length=42, index=True)
    token_id: str = Field(max_length=78)  # uint256 as decimal string
    owner: str = Field(max_length=42, index=True)
    approved: Optional[str] = Field(default=None, max_length=42)
    token_uri: Optional[str] = Field(default=None)
    metadata_id: Optional[str] = Field(default=None, max_length=131)
    created_at_timestamp: int = Field(default=0, sa_type=BigInteger)
    created_at_block_number: int = Field(default=0, sa_type=BigInteger)
    updated_at_timestamp: int = Field(default=0, sa_type=BigInteger)
    updated_at_block_number: int = Field(default=0, sa_type=BigInteger)


class TokenMetadata(SQLModel, table=True):
    """TokenMetadata holds the document resolved from a token's URI."""

    __tablename__ = "token_metadata"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=131)
    token: str = Field(max_length=122, index=True)
    uri: str
    name: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    image: Optional[str] = Field(default=None)
    external_url: Optional[str] = Field(default=None)
    attributes: Optional[list] = Field(default=None, sa_column=Column(JSON))
