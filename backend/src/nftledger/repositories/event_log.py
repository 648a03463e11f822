"""Event log repositories for the ledger store.

Transfer, Approval and ApprovalForAll records are append-only: a record is
written once under its "<txHash>-<logIndex>" key and never updated.
Appending an existing key fails with IntegrityError on flush.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from nftledger.models.event_log import Approval, ApprovalForAll, Transfer


class TransferRepository:
    """Repository for Transfer log records."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, record_id: str) -> Transfer | None:
        """Retrieve transfer by "<txHash>-<logIndex>" key."""
        return await self.session.get(Transfer, record_id)

    async def append(self, transfer: Transfer) -> Transfer:
        """Persist a new transfer record.

        Args:
            transfer: Transfer record to persist

        Returns:
            Persisted transfer

        Raises:
            IntegrityError: If a record with the same key already exists
        """
        self.session.add(transfer)
        await self.session.flush()
        return transfer


class ApprovalRepository:
    """Repository for Approval log records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, record_id: str) -> Approval | None:
        """Retrieve approval by "<txHash>-<logIndex>" key."""
        return await self.session.get(Approval, record_id)

    async def append(self, approval: Approval) -> Approval:
        """Persist a new approval record."""
        self.session.add(approval)
        await self.session.flush()
        return approval


class ApprovalForAllRepository:
    """Repository for ApprovalForAll log records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, record_id: str) -> ApprovalForAll | None:
        """Retrieve operator approval by "<txHash>-<logIndex>" key."""
        return await self.session.get(ApprovalForAll, record_id)

    async def append(self, approval_for_all: ApprovalForAll) -> ApprovalForAll:
        """Persist a new operator approval record."""
        self.session.add(approval_for_all)
        await self.session.flush()
        return approval_for_all
