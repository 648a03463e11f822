"""Contract repository for the ledger store."""

from sqlalchemy.ext.asyncio import AsyncSession

from nftledger.models.contract import Contract


class ContractRepository:
    """Repository for Contract entities keyed by contract address."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, address: str) -> Contract | None:
        """Retrieve contract by address.

        Args:
            address: Lowercase 0x-prefixed contract address

        Returns:
            Contract if found, None otherwise
        """
        return await self.session.get(Contract, address)

    async def upsert(self, contract: Contract) -> Contract:
        """Insert a new contract or write back changes to a loaded one.

        Args:
            contract: Contract entity to persist

        Returns:
            Persisted contract
        """
        self.session.add(contract)
        await self.session.flush()
        return contract
