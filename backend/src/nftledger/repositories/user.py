"""User repository for the ledger store."""

from sqlalchemy.ext.asyncio import AsyncSession

from nftledger.models.user import User


class UserRepository:
    """Repository for User entities keyed by wallet address."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, address: str) -> User | None:
        """Retrieve user by wallet address.

        Args:
            address: Lowercase 0x-prefixed wallet address

        Returns:
            User if found, None otherwise
        """
        return await self.session.get(User, address)

    async def upsert(self, user: User) -> User:
        """Insert a new user or write back changes to a loaded one."""
        self.session.add(user)
        await self.session.flush()
        return user
