"""Sequential event processor.

Admits events one at a time in chain order. Each event runs in its own unit of
work together with the checkpoint update, so the store always ends at the last
fully committed event and replayed events are skipped.
"""

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from nftledger.services.blockchain.chain_reader import ChainReader
from nftledger.services.ledger.events import (
    ApprovalEvent,
    ApprovalForAllEvent,
    ChainEvent,
    TransferEvent,
)
from nftledger.services.ledger.handlers import (
    handle_approval,
    handle_approval_for_all,
    handle_transfer,
)
from nftledger.services.ledger.resolver import EntityResolver
from nftledger.services.metadata.enricher import MetadataEnricher
from nftledger.uow import UnitOfWork

logger = structlog.get_logger()

CHECKPOINT_KEY = "last_processed_event"
LAST_SCANNED_BLOCK_KEY = "last_scanned_block"


@dataclass
class ProcessingResult:
    """Result of processing a batch of events."""

    processed: int = 0  # Events applied and committed
    skipped: int = 0  # Events at or before the checkpoint


async def get_checkpoint(uow: UnitOfWork) -> tuple[int, int] | None:
    """Get (block_number, log_index) of the last committed event, or None."""
    value = await uow.system_state.get_state(CHECKPOINT_KEY)
    if value is None:
        return None
    return (int(value["block_number"]), int(value["log_index"]))


async def get_last_scanned_block(uow: UnitOfWork) -> int | None:
    """Get the highest block whose logs have all been fetched and processed."""
    value = await uow.system_state.get_state(LAST_SCANNED_BLOCK_KEY)
    if value is None:
        return None
    return int(value["block_number"])


async def update_last_scanned_block(block_number: int, uow: UnitOfWork) -> None:
    """Record that every log up to block_number has been processed."""
    await uow.system_state.set_state(LAST_SCANNED_BLOCK_KEY, {"block_number": block_number})
    logger.debug("processor.last_scanned_block", block_number=block_number)


class EventProcessor:
    """Applies chain events to the ledger store, one unit of work per event."""

    def __init__(self, uow_factory, chain_reader: ChainReader, enricher: MetadataEnricher):
        """Initialize processor.

        Args:
            uow_factory: Factory returned by create_uow_factory()
            chain_reader: Reader for contract name()/symbol()
            enricher: tokenURI and metadata resolution for transfers
        """
        self.uow_factory = uow_factory
        self.chain_reader = chain_reader
        self.enricher = enricher

    async def process(self, event: ChainEvent) -> bool:
        """Apply one event and advance the checkpoint atomically.

        Args:
            event: Decoded chain event

        Returns:
            True if the event was applied, False if it was at or before the checkpoint

        Raises:
            StoreFailure: If the store cannot persist the event (nothing is committed)
            BlockchainConnectionError: If a required chain read fails (nothing is committed)
        """
        ctx = event.context

        async with await self.uow_factory() as uow:
            checkpoint = await get_checkpoint(uow)
            if checkpoint is not None and ctx.position <= checkpoint:
                logger.info(
                    "processor.event_skipped",
                    log_id=ctx.log_id,
                    block_number=ctx.block_number,
                    log_index=ctx.log_index,
                    checkpoint=checkpoint,
                )
                return False

            resolver = EntityResolver(uow, self.chain_reader)

            if isinstance(event, TransferEvent):
                await handle_transfer(event, uow, resolver, self.enricher)
            elif isinstance(event, ApprovalEvent):
                await handle_approval(event, uow, resolver)
            elif isinstance(event, ApprovalForAllEvent):
                await handle_approval_for_all(event, uow, resolver)
            else:
                raise TypeError(f"Unsupported event type: {type(event).__name__}")

            await uow.system_state.set_state(
                CHECKPOINT_KEY,
                {
                    "block_number": ctx.block_number,
                    "log_index": ctx.log_index,
                    "transaction_hash": ctx.transaction_hash.lower(),
                },
            )

        return True

    async def process_all(self, events: Iterable[ChainEvent]) -> ProcessingResult:
        """Apply events strictly in the given order, each to completion before the next.

        Stops at the first failure; events already committed stay committed.
        """
        result = ProcessingResult()

        for event in events:
            if await self.process(event):
                result.processed += 1
            else:
                result.skipped += 1

        logger.info("processor.batch_complete", processed=result.processed, skipped=result.skipped)
        return result
