"""Decode raw ERC-721 event logs into typed events.

ERC-721 event layouts:
    Transfer(address indexed from, address indexed to, uint256 indexed tokenId)
    Approval(address indexed owner, address indexed approved, uint256 indexed tokenId)
    ApprovalForAll(address indexed owner, address indexed operator, bool approved)

ERC-20 Transfer/Approval share topic0 but carry only 3 topics (value is in data);
those logs are not ours and are ignored.
"""

from typing import Any

from web3 import Web3

from nftledger.services.exceptions import EventDecodeError
from nftledger.services.ledger.events import (
    ApprovalEvent,
    ApprovalForAllEvent,
    ChainEvent,
    EventContext,
    TransferEvent,
    normalize_address,
)

TRANSFER_TOPIC = bytes(Web3.keccak(text="Transfer(address,address,uint256)"))
APPROVAL_TOPIC = bytes(Web3.keccak(text="Approval(address,address,uint256)"))
APPROVAL_FOR_ALL_TOPIC = bytes(Web3.keccak(text="ApprovalForAll(address,address,bool)"))

EVENT_TOPICS = [TRANSFER_TOPIC, APPROVAL_TOPIC, APPROVAL_FOR_ALL_TOPIC]


def to_bytes(value: Any) -> bytes:
    """Convert HexBytes, bytes or a 0x-prefixed hex string to bytes."""
    if isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return bytes(value)


def to_hex(value: Any) -> str:
    """Convert HexBytes, bytes or a hex string to a lowercase 0x-prefixed string."""
    return "0x" + to_bytes(value).hex()


def topic_to_address(topic: Any) -> str:
    """Extract the address held in the low 20 bytes of a 32-byte topic."""
    raw = to_bytes(topic)
    if len(raw) != 32:
        raise EventDecodeError(f"Address topic must be 32 bytes, got {len(raw)}")
    return normalize_address("0x" + raw[-20:].hex())


def topic_to_uint(topic: Any) -> int:
    """Interpret a 32-byte topic as a big-endian uint256."""
    raw = to_bytes(topic)
    if len(raw) != 32:
        raise EventDecodeError(f"uint256 topic must be 32 bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def decode_log(log: Any, context: EventContext) -> ChainEvent | None:
    """Decode one log entry from eth_getLogs.

    Args:
        log: Log receipt (mapping with address, topics, data)
        context: Block and transaction context for the log

    Returns:
        Typed event, or None if the log is not an ERC-721 event

    Raises:
        EventDecodeError: If the log matches an ERC-721 signature but is malformed
    """
    topics = log.get("topics") or []
    if not topics:
        return None

    signature = to_bytes(topics[0])
    contract_address = normalize_address(str(log["address"]))

    try:
        if signature == TRANSFER_TOPIC:
            if len(topics) != 4:
                return None
            return TransferEvent(
                contract_address=contract_address,
                from_address=topic_to_address(topics[1]),
                to_address=topic_to_address(topics[2]),
                token_id=topic_to_uint(topics[3]),
                context=context,
            )

        if signature == APPROVAL_TOPIC:
            if len(topics) != 4:
                return None
            return ApprovalEvent(
                contract_address=contract_address,
                owner=topic_to_address(topics[1]),
                approved=topic_to_address(topics[2]),
                token_id=topic_to_uint(topics[3]),
                context=context,
            )

        if signature == APPROVAL_FOR_ALL_TOPIC:
            if len(topics) != 3:
                raise EventDecodeError(f"ApprovalForAll expects 3 topics, got {len(topics)}")
            data = to_bytes(log.get("data") or b"")
            if len(data) < 32:
                raise EventDecodeError(f"ApprovalForAll data too short: {len(data)} bytes")
            return ApprovalForAllEvent(
                contract_address=contract_address,
                owner=topic_to_address(topics[1]),
                operator=topic_to_address(topics[2]),
                approved=int.from_bytes(data[:32], "big") != 0,
                context=context,
            )
    except ValueError as e:
        raise EventDecodeError(f"Failed to decode log {context.log_id}: {e}") from e

    return None
