"""Token repositories for the ledger store.

Covers Token entities and their companion TokenMetadata documents.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from nftledger.models.token import Token, TokenMetadata


class TokenRepository:
    """Repository for Token entities keyed by "<contract>-<tokenId>"."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, token_key: str) -> Token | None:
        """Retrieve token by composite key.

        Args:
            token_key: "<contract address>-<decimal token id>"

        Returns:
            Token if found, None otherwise
        """
        return await self.session.get(Token, token_key)

    async def upsert(self, token: Token) -> Token:
        """Insert a new token or write back changes to a loaded one."""
        self.session.add(token)
        await self.session.flush()
        return token


class TokenMetadataRepository:
    """Repository for TokenMetadata entities keyed by "<tokenKey>-metadata"."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, metadata_key: str) -> TokenMetadata | None:
        """Retrieve metadata document by key."""
        return await self.session.get(TokenMetadata, metadata_key)

    async def upsert(self, metadata: TokenMetadata) -> TokenMetadata:
        """Persist a freshly resolved metadata document.

        merge() is used because every successful fetch builds a new instance
        for a key that may already be stored from an earlier transfer.

        Args:
            metadata: TokenMetadata entity to persist

        Returns:
            Session-bound metadata instance
        """
        merged = await self.session.merge(metadata)
        await self.session.flush()
        return merged
