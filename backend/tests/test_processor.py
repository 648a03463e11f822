"""EventProcessor tests.

Tests cover:
- Checkpoint advance and replay skipping
- Batch processing counts
- Atomicity: a failing event leaves no partial writes and keeps the checkpoint
- last_scanned_block bookkeeping
"""

import pytest

from nftledger.services.exceptions import BlockchainConnectionError, StoreFailure
from nftledger.services.ledger.events import ZERO_ADDRESS
from nftledger.services.ledger.processor import (
    CHECKPOINT_KEY,
    get_checkpoint,
    get_last_scanned_block,
    update_last_scanned_block,
)

CONTRACT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
X = "0x1111111111111111111111111111111111111111"
Y = "0x2222222222222222222222222222222222222222"


@pytest.mark.asyncio
async def test_checkpoint_advances_with_each_event(processor, uow_factory, events):
    """The checkpoint names the last committed event."""
    first = events.transfer(ZERO_ADDRESS, X, 1, block_number=100)
    second = events.transfer(X, Y, 1, block_number=101)

    await processor.process(first)
    await processor.process(second)

    async with await uow_factory() as uow:
        assert await get_checkpoint(uow) == (101, second.context.log_index)
        state = await uow.system_state.get_state(CHECKPOINT_KEY)
        assert state["transaction_hash"] == second.context.transaction_hash.lower()


@pytest.mark.asyncio
async def test_replayed_event_is_skipped(processor, uow_factory, events):
    """Re-delivering an applied event does not double-count it."""
    mint = events.transfer(ZERO_ADDRESS, X, 1, block_number=100)

    assert await processor.process(mint) is True
    assert await processor.process(mint) is False

    async with await uow_factory() as uow:
        assert (await uow.contracts.get(CONTRACT)).total_supply == 1
        assert (await uow.users.get(X)).total_tokens_owned == 1


@pytest.mark.asyncio
async def test_process_all_counts_processed_and_skipped(processor, events):
    """A batch overlapping the checkpoint applies only the new events."""
    batch = [
        events.transfer(ZERO_ADDRESS, X, 1, block_number=100),
        events.transfer(ZERO_ADDRESS, X, 2, block_number=100),
        events.approval(X, Y, 1, block_number=101),
    ]
    await processor.process(batch[0])

    result = await processor.process_all(batch)

    assert result.processed == 2
    assert result.skipped == 1


@pytest.mark.asyncio
async def test_store_failure_rolls_back_whole_event(processor, uow_factory, events):
    """A second event reusing a log key fails without partial writes.

    Steps:
    1. Mint tokenId=1 to X
    2. Deliver a later mint of tokenId=2 carrying the same tx hash and log index
    3. StoreFailure is raised; token 2, its owner counters and the checkpoint are untouched
    """
    first = events.transfer(ZERO_ADDRESS, X, 1, block_number=100)
    await processor.process(first)

    clash = events.transfer(
        ZERO_ADDRESS,
        Y,
        2,
        block_number=101,
        transaction_hash=first.context.transaction_hash,
        log_index=first.context.log_index,
    )
    assert clash.context.position > first.context.position

    with pytest.raises(StoreFailure):
        await processor.process(clash)

    async with await uow_factory() as uow:
        assert await uow.tokens.get(f"{CONTRACT}-2") is None
        assert await uow.users.get(Y) is None
        assert (await uow.contracts.get(CONTRACT)).total_supply == 1
        assert await get_checkpoint(uow) == first.context.position


@pytest.mark.asyncio
async def test_chain_error_during_contract_creation_aborts_event(
    processor, uow_factory, events, chain_reader
):
    """An unreachable RPC endpoint while reading name() commits nothing."""
    chain_reader.try_call.side_effect = BlockchainConnectionError("connection refused")

    with pytest.raises(BlockchainConnectionError):
        await processor.process(events.transfer(ZERO_ADDRESS, X, 1))

    async with await uow_factory() as uow:
        assert await uow.contracts.get(CONTRACT) is None
        assert await get_checkpoint(uow) is None


@pytest.mark.asyncio
async def test_unsupported_event_type_is_rejected(processor):
    """Only Transfer, Approval and ApprovalForAll events are accepted."""
    with pytest.raises(TypeError, match="Unsupported event type"):
        await processor.process(_ForeignEvent())


class _ForeignContext:
    block_number = 1
    log_index = 0
    log_id = "0xforeign-0"
    position = (1, 0)


class _ForeignEvent:
    context = _ForeignContext()


@pytest.mark.asyncio
async def test_last_scanned_block_round_trip(uow_factory):
    """last_scanned_block is unset until written, then returns the latest value."""
    async with await uow_factory() as uow:
        assert await get_last_scanned_block(uow) is None
        await update_last_scanned_block(150, uow)

    async with await uow_factory() as uow:
        await update_last_scanned_block(175, uow)

    async with await uow_factory() as uow:
        assert await get_last_scanned_block(uow) == 175
