"""Event feed: fetch ERC-721 logs from the chain with their block and receipt context.

This module provides functions to:
1. Fetch Transfer/Approval/ApprovalForAll logs using eth_getLogs in block chunks
2. Attach block timestamp, gas price and gas used to every log
3. Return decoded events sorted in chain order
"""

from typing import Any

import structlog
from web3 import Web3

from nftledger.services.blockchain.log_decoder import EVENT_TOPICS, decode_log, to_hex
from nftledger.services.exceptions import BlockchainConnectionError, EventDecodeError
from nftledger.services.ledger.events import ChainEvent, EventContext

logger = structlog.get_logger()


class _ContextLoader:
    """Caches block timestamps and transaction data while building event contexts."""

    def __init__(self, w3: Web3):
        self.w3 = w3
        self._timestamps: dict[int, int] = {}
        self._gas: dict[str, tuple[int | None, int | None]] = {}

    def block_timestamp(self, block_number: int) -> int:
        if block_number not in self._timestamps:
            block = self.w3.eth.get_block(block_number)
            self._timestamps[block_number] = int(block["timestamp"])
        return self._timestamps[block_number]

    def gas(self, tx_hash: str) -> tuple[int | None, int | None]:
        """Return (gas_price, gas_used); either is None when unavailable."""
        if tx_hash in self._gas:
            return self._gas[tx_hash]

        gas_price = None
        try:
            tx = self.w3.eth.get_transaction(tx_hash)
            gas_price = tx.get("gasPrice")
        except Exception as e:
            logger.warning("event_feed.transaction_unavailable", tx_hash=tx_hash, error=str(e))

        gas_used = None
        try:
            receipt = self.w3.eth.get_transaction_receipt(tx_hash)
            gas_used = receipt.get("gasUsed")
        except Exception as e:
            logger.warning("event_feed.receipt_unavailable", tx_hash=tx_hash, error=str(e))

        self._gas[tx_hash] = (gas_price, gas_used)
        return self._gas[tx_hash]

    def context(self, log: Any) -> EventContext:
        tx_hash = to_hex(log["transactionHash"])
        gas_price, gas_used = self.gas(tx_hash)
        return EventContext(
            block_timestamp=self.block_timestamp(log["blockNumber"]),
            block_number=log["blockNumber"],
            transaction_hash=tx_hash,
            log_index=log["logIndex"],
            gas_price=gas_price,
            gas_used=gas_used,
        )


def fetch_events(
    w3: Web3,
    contract_address: str,
    from_block: int,
    to_block: int,
    batch_size: int = 1000,
) -> list[ChainEvent]:
    """Fetch and decode ERC-721 events emitted by a contract in a block range.

    Args:
        w3: Web3 instance for RPC calls
        contract_address: Address of the ERC-721 contract
        from_block: Starting block number (inclusive)
        to_block: Ending block number (inclusive)
        batch_size: Maximum number of blocks per eth_getLogs request (default: 1000)

    Returns:
        Decoded events ordered by block number and log index

    Raises:
        BlockchainConnectionError: If eth_getLogs or a block lookup fails
        EventDecodeError: If a matching log is malformed
    """
    logger.info(
        "fetch_events.start",
        contract_address=contract_address,
        from_block=from_block,
        to_block=to_block,
        batch_size=batch_size,
    )

    address = Web3.to_checksum_address(contract_address)
    loader = _ContextLoader(w3)
    events: list[ChainEvent] = []
    current_block = from_block

    while current_block <= to_block:
        chunk_end = min(current_block + batch_size - 1, to_block)

        try:
            logs = w3.eth.get_logs(
                {
                    "fromBlock": current_block,
                    "toBlock": chunk_end,
                    "address": address,
                    # topic0 OR-filter: any of the three ERC-721 events
                    "topics": [[to_hex(topic) for topic in EVENT_TOPICS]],
                }
            )
            logger.debug(
                "fetch_events.logs_received",
                from_block=current_block,
                to_block=chunk_end,
                count=len(logs),
            )

            for log in sorted(logs, key=lambda entry: (entry["blockNumber"], entry["logIndex"])):
                if log.get("removed", False):
                    logger.warning("fetch_events.removed_log", tx_hash=to_hex(log["transactionHash"]))
                    continue
                event = decode_log(log, loader.context(log))
                if event is not None:
                    events.append(event)

        except EventDecodeError:
            raise
        except Exception as e:
            logger.error(
                "fetch_events.error",
                error=str(e),
                from_block=current_block,
                to_block=chunk_end,
            )
            raise BlockchainConnectionError(
                f"Failed to fetch logs for blocks {current_block}-{chunk_end}: {e}"
            ) from e

        current_block = chunk_end + 1

    logger.info("fetch_events.complete", total_events=len(events))
    return events
