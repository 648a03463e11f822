"""pytest fixtures for ledger tests.

Provides:
- engine: Function-scoped SQLite (aiosqlite) engine with all tables created
- session: Function-scoped database session
- uow_factory: Function-scoped UnitOfWork factory
- chain_reader: Mock ChainReader with per-method CallResult responses
- events: Builder for Transfer/Approval/ApprovalForAll events in chain order
- processor: EventProcessor wired to the fixtures above (metadata fetch disabled)
"""

import os
from typing import AsyncGenerator
from unittest.mock import Mock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from nftledger.core.database import create_engine, create_tables
from nftledger.services.blockchain.chain_reader import CallResult, ChainReader
from nftledger.services.ledger.events import (
    ApprovalEvent,
    ApprovalForAllEvent,
    EventContext,
    TransferEvent,
)
from nftledger.services.ledger.processor import EventProcessor
from nftledger.services.metadata.enricher import MetadataEnricher
from nftledger.uow import create_uow_factory

CONTRACT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"


@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Run every test with APP_ENV=test so Settings skips required-variable checks."""
    os.environ["APP_ENV"] = "test"
    yield


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Provide a fresh SQLite database file per test with the ledger schema."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def uow_factory(session_factory):
    """Provide function-scoped UnitOfWork factory."""
    return create_uow_factory(session_factory)


@pytest.fixture
def chain_reader():
    """Mock ChainReader answering from a mutable method -> CallResult mapping.

    Tests change reader.responses to simulate reverts, e.g.
    chain_reader.responses["tokenURI"] = CallResult.ok("ipfs://...").
    """
    reader = Mock(spec=ChainReader)
    reader.responses = {
        "name": CallResult.ok("Test Collection"),
        "symbol": CallResult.ok("TEST"),
        "tokenURI": CallResult.revert(),
    }

    def try_call(address, method, *args):
        return reader.responses[method]

    reader.try_call.side_effect = try_call
    return reader


class EventFactory:
    """Builds events with unique, increasing (block, log index) positions."""

    def __init__(self, contract: str = CONTRACT):
        self.contract = contract
        self._log_index = 0

    def context(self, block_number: int, **overrides) -> EventContext:
        self._log_index += 1
        values = {
            "block_timestamp": 1_700_000_000 + block_number * 12,
            "block_number": block_number,
            "transaction_hash": f"0x{block_number:032x}{self._log_index:032x}",
            "log_index": self._log_index,
            "gas_price": 20_000_000_000,
            "gas_used": 51_234,
        }
        values.update(overrides)
        return EventContext(**values)

    def transfer(self, from_address, to_address, token_id, block_number=100, **ctx):
        return TransferEvent(
            contract_address=self.contract,
            from_address=from_address,
            to_address=to_address,
            token_id=token_id,
            context=self.context(block_number, **ctx),
        )

    def approval(self, owner, approved, token_id, block_number=100, **ctx):
        return ApprovalEvent(
            contract_address=self.contract,
            owner=owner,
            approved=approved,
            token_id=token_id,
            context=self.context(block_number, **ctx),
        )

    def approval_for_all(self, owner, operator, approved, block_number=100, **ctx):
        return ApprovalForAllEvent(
            contract_address=self.contract,
            owner=owner,
            operator=operator,
            approved=approved,
            context=self.context(block_number, **ctx),
        )


@pytest.fixture
def events() -> EventFactory:
    return EventFactory()


@pytest.fixture
def processor(uow_factory, chain_reader) -> EventProcessor:
    """EventProcessor with metadata document resolution disabled."""
    return EventProcessor(uow_factory, chain_reader, MetadataEnricher(chain_reader))
