"""Typed ERC-721 events and the helpers shared by every reducer."""

from dataclasses import dataclass

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def is_zero_address(address: str) -> bool:
    """Return True if address is the all-zero sentinel used for mint and burn."""
    return address.lower() == ZERO_ADDRESS


def normalize_address(address: str) -> str:
    """Lowercase an address so it can be used as an entity key."""
    return address.lower()


def token_key(contract_address: str, token_id: int) -> str:
    """Build the Token key "<contract>-<tokenId>"."""
    return f"{normalize_address(contract_address)}-{token_id}"


def metadata_key(token_key: str) -> str:
    """Build the TokenMetadata key derived from its token's key."""
    return f"{token_key}-metadata"


@dataclass(frozen=True)
class EventContext:
    """Block and transaction context shared by all event kinds.

    gas_price and gas_used come from the transaction and its receipt and are
    None when the feed could not retrieve them.
    """

    block_timestamp: int
    block_number: int
    transaction_hash: str
    log_index: int
    gas_price: int | None = None
    gas_used: int | None = None

    @property
    def log_id(self) -> str:
        """Key of the log entity produced by this event: "<txHash>-<logIndex>"."""
        return f"{self.transaction_hash.lower()}-{self.log_index}"

    @property
    def position(self) -> tuple[int, int]:
        """Chain order of the event."""
        return (self.block_number, self.log_index)


@dataclass(frozen=True)
class TransferEvent:
    contract_address: str
    from_address: str
    to_address: str
    token_id: int
    context: EventContext


@dataclass(frozen=True)
class ApprovalEvent:
    contract_address: str
    owner: str
    approved: str
    token_id: int
    context: EventContext


@dataclass(frozen=True)
class ApprovalForAllEvent:
    contract_address: str
    owner: str
    operator: str
    approved: bool
    context: EventContext


ChainEvent = TransferEvent | ApprovalEvent | ApprovalForAllEvent
