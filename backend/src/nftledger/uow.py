"""Unit of Work pattern for the ledger store.

Provides transaction management with automatic commit/rollback and access to all repositories.
One UnitOfWork spans exactly one chain event.
"""

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nftledger.repositories.contract import ContractRepository
from nftledger.repositories.event_log import (
    ApprovalForAllRepository,
    ApprovalRepository,
    TransferRepository,
)
from nftledger.repositories.system_state import SystemStateRepository
from nftledger.repositories.token import TokenMetadataRepository, TokenRepository
from nftledger.repositories.user import UserRepository
from nftledger.services.exceptions import StoreFailure

logger = structlog.get_logger()


class UnitOfWork:
    """Unit of Work pattern implementation.

    Manages database transactions and provides access to all repositories.
    Use as async context manager for automatic commit/rollback.

    Example:
        async with await uow_factory() as uow:
            token = await uow.tokens.get(token_key)
            token.owner = new_owner
            await uow.tokens.upsert(token)
            # Automatically commits on successful exit
            # Automatically rolls back on exception
    """

    def __init__(self, session: AsyncSession):
        """Initialize UnitOfWork with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

        # Instantiate all repositories with the session
        self.contracts = ContractRepository(session)
        self.tokens = TokenRepository(session)
        self.token_metadata = TokenMetadataRepository(session)
        self.users = UserRepository(session)
        self.transfers = TransferRepository(session)
        self.approvals = ApprovalRepository(session)
        self.approvals_for_all = ApprovalForAllRepository(session)
        self.system_state = SystemStateRepository(session)

    async def __aenter__(self):
        """Enter async context manager.

        Returns:
            self: UnitOfWork instance with all repositories available
        """
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager with automatic commit/rollback.

        Database errors, whether raised inside the block or by the final commit,
        are re-raised as StoreFailure after rollback so that no partial event is
        ever persisted.

        Returns:
            False: Always re-raise exceptions after rollback
        """
        try:
            if exc_type is None:
                try:
                    await self.session.commit()
                except SQLAlchemyError as e:
                    await self.session.rollback()
                    logger.error("transaction.commit_failed", error=str(e))
                    raise StoreFailure(f"Failed to commit transaction: {e}") from e
                logger.debug("transaction.committed")
                return False

            await self.session.rollback()
            logger.info("transaction.rolled_back", exc_type=exc_type.__name__)

            if isinstance(exc_val, SQLAlchemyError):
                raise StoreFailure(f"Failed to write entities: {exc_val}") from exc_val

            return False
        finally:
            await self.session.close()


def create_uow_factory(session_factory: async_sessionmaker[AsyncSession]):
    """Create a factory function that produces UnitOfWork instances.

    Args:
        session_factory: SQLAlchemy async session factory

    Returns:
        Callable that creates UnitOfWork instances from new sessions

    Example:
        session_factory = setup_db_session(db_url, pool_size=20)
        uow_factory = create_uow_factory(session_factory)

        async with await uow_factory() as uow:
            await uow.contracts.upsert(contract)
    """

    async def _create_uow():
        """Create a new UnitOfWork instance with a new session."""
        session = session_factory()
        return UnitOfWork(session)

    return _create_uow
