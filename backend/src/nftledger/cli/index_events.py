"""CLI command for indexing new ERC-721 events into the ledger store.

Usage:
    python -m nftledger.cli [OPTIONS]

Examples:
    # Index from the last checkpoint (or START_BLOCK on first run) to the chain head
    python -m nftledger.cli

    # Stop at a specific block
    python -m nftledger.cli --to-block 18000000

    # Dry run (fetch and decode, no database writes)
    python -m nftledger.cli --dry-run -v
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace

import structlog
from web3 import Web3

from nftledger.core.config import Settings, configure_logging
from nftledger.core.database import create_tables, setup_db_session
from nftledger.services.blockchain.chain_reader import ChainReader
from nftledger.services.blockchain.event_feed import fetch_events
from nftledger.services.exceptions import BlockchainConnectionError
from nftledger.services.ledger.processor import (
    EventProcessor,
    get_checkpoint,
    get_last_scanned_block,
    update_last_scanned_block,
)
from nftledger.services.metadata.enricher import MetadataEnricher
from nftledger.services.metadata.fetcher import MetadataFetcher
from nftledger.uow import create_uow_factory

logger = structlog.get_logger()

MAX_FETCH_ATTEMPTS = 3


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(description="Index ERC-721 Transfer/Approval events into the ledger")

    parser.add_argument(
        "--to-block",
        default="latest",
        help='Ending block number or "latest" (default: latest)',
    )

    parser.add_argument(
        "--batch-size",
        type=int,
        help="Number of blocks per eth_getLogs request (default: LOG_BATCH_SIZE)",
    )

    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before indexing (local SQLite stores; production uses Alembic)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and decode events without database writes",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


def resolve_start_block(
    checkpoint: tuple[int, int] | None, last_scanned: int | None, start_block: int
) -> int:
    """Pick the first block to fetch.

    The block after the last fully scanned one, else the block of the last committed
    event (its earlier logs are skipped by the processor), else the configured start.
    """
    if last_scanned is not None:
        return last_scanned + 1
    if checkpoint is not None:
        return checkpoint[0]
    return start_block


async def fetch_with_retry(
    w3: Web3, contract_address: str, from_block: int, to_block: int, batch_size: int
):
    """Fetch events, retrying transient RPC failures with exponential backoff (2, 4 s)."""
    for attempt in range(1, MAX_FETCH_ATTEMPTS + 1):
        try:
            return fetch_events(w3, contract_address, from_block, to_block, batch_size)
        except BlockchainConnectionError as e:
            if attempt == MAX_FETCH_ATTEMPTS:
                raise
            backoff_seconds = 2**attempt
            logger.warning(
                "index_events.fetch_retry",
                error=str(e),
                attempt=attempt,
                retry_in_seconds=backoff_seconds,
            )
            await asyncio.sleep(backoff_seconds)
    raise BlockchainConnectionError("Unexpected error in fetch_with_retry")


async def async_main(argv: list[str] | None = None) -> int:
    """Main CLI entry point (async).

    Returns:
        Exit code: 0 (success), 1 (error), 2 (interrupted)
    """
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    batch_size = args.batch_size or settings.log_batch_size

    logger.info(
        "index_events.start",
        contract=settings.contract_address,
        dry_run=args.dry_run,
        batch_size=batch_size,
    )

    try:
        w3 = Web3(Web3.HTTPProvider(settings.rpc_url))
        if not w3.is_connected():
            logger.error("index_events.error", message=f"Failed to connect to RPC: {settings.rpc_url}")
            return 1

        session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
        if args.create_tables:
            await create_tables(session_factory.kw["bind"])
        uow_factory = create_uow_factory(session_factory)

        async with await uow_factory() as uow:
            checkpoint = await get_checkpoint(uow)
            last_scanned = await get_last_scanned_block(uow)

        from_block = resolve_start_block(checkpoint, last_scanned, settings.start_block)

        if args.to_block == "latest":
            to_block = w3.eth.block_number
        else:
            try:
                to_block = int(args.to_block)
            except ValueError:
                logger.error("index_events.error", message=f"Invalid --to-block value: {args.to_block}")
                return 1

        logger.info(
            "index_events.range",
            from_block=from_block,
            to_block=to_block,
            checkpoint=checkpoint,
            last_scanned_block=last_scanned,
        )

        if from_block > to_block:
            logger.info("index_events.up_to_date", from_block=from_block, to_block=to_block)
            return 0

        chain_reader = ChainReader(w3)
        fetcher = (
            MetadataFetcher(
                ipfs_gateway=settings.ipfs_gateway,
                arweave_gateway=settings.arweave_gateway,
                timeout=settings.metadata_fetch_timeout_seconds,
            )
            if settings.metadata_fetch_enabled
            else None
        )
        processor = EventProcessor(uow_factory, chain_reader, MetadataEnricher(chain_reader, fetcher))

        total_processed = 0
        total_skipped = 0
        window_start = from_block

        while window_start <= to_block:
            window_end = min(window_start + batch_size - 1, to_block)
            events = await fetch_with_retry(
                w3, settings.contract_address, window_start, window_end, batch_size
            )

            if args.dry_run:
                for event in events[:10]:
                    logger.info(
                        "index_events.dry_run_event",
                        event_type=type(event).__name__,
                        log_id=event.context.log_id,
                        block_number=event.context.block_number,
                    )
                if len(events) > 10:
                    logger.info(
                        "index_events.dry_run_truncated",
                        message=f"... and {len(events) - 10} more events",
                    )
            else:
                result = await processor.process_all(events)
                total_processed += result.processed
                total_skipped += result.skipped

                async with await uow_factory() as uow:
                    await update_last_scanned_block(window_end, uow)

            window_start = window_end + 1

        logger.info(
            "index_events.complete",
            processed=total_processed,
            skipped=total_skipped,
            last_block=to_block,
            dry_run=args.dry_run,
        )
        return 0

    except KeyboardInterrupt:
        logger.warning("index_events.interrupted", message="Indexing interrupted by user")
        return 2

    except Exception as e:
        logger.error("index_events.fatal_error", error=str(e), error_type=type(e).__name__, exc_info=True)
        return 1


def main() -> int:
    """Synchronous wrapper for async main."""
    return asyncio.run(async_main())


if __name__ == "__main__":
    sys.exit(main())
