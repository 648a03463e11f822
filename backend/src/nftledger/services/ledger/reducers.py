"""State transitions for ERC-721 events.

Reducers mutate the entities they are given and build the event's log record.
They never touch the store; handlers load entities before and persist them after.
"""

from enum import Enum

import structlog

from nftledger.models.contract import Contract
from nftledger.models.event_log import Approval, ApprovalForAll, Transfer
from nftledger.models.token import Token
from nftledger.models.user import User
from nftledger.services.ledger.events import (
    ApprovalEvent,
    ApprovalForAllEvent,
    TransferEvent,
    is_zero_address,
)

logger = structlog.get_logger()


class TransferKind(str, Enum):
    """Branch taken by a Transfer event."""

    MINT = "mint"
    BURN = "burn"
    TRANSFER = "transfer"


def classify_transfer(from_address: str, to_address: str) -> TransferKind:
    """Mint is checked before burn, so a zero-to-zero transfer counts as a mint."""
    if is_zero_address(from_address):
        return TransferKind.MINT
    if is_zero_address(to_address):
        return TransferKind.BURN
    return TransferKind.TRANSFER


def reduce_transfer(
    event: TransferEvent,
    contract: Contract,
    token: Token,
    from_user: User,
    to_user: User,
) -> TransferKind:
    """Apply a Transfer to supply, user counters and token ownership.

    from_user and to_user may be the same instance (self-transfer): the sender
    and recipient updates then cancel out on total_tokens_owned while both
    sent and received grow by one.

    Returns:
        The branch taken; contract.total_supply changed only for MINT and BURN
    """
    ctx = event.context
    kind = classify_transfer(event.from_address, event.to_address)

    if kind is TransferKind.MINT:
        contract.total_supply += 1
        token.created_at_timestamp = ctx.block_timestamp
        token.created_at_block_number = ctx.block_number
        to_user.total_tokens_received += 1
        to_user.total_tokens_owned += 1
    elif kind is TransferKind.BURN:
        if contract.total_supply == 0:
            logger.warning(
                "transfer.burn_without_supply",
                contract=contract.id,
                token=token.id,
                block_number=ctx.block_number,
            )
        contract.total_supply -= 1
        from_user.total_tokens_sent += 1
        from_user.total_tokens_owned -= 1
    else:
        from_user.total_tokens_sent += 1
        from_user.total_tokens_owned -= 1
        to_user.total_tokens_received += 1
        to_user.total_tokens_owned += 1

    token.owner = to_user.id
    token.approved = None
    token.updated_at_timestamp = ctx.block_timestamp
    token.updated_at_block_number = ctx.block_number

    return kind


def build_transfer_record(
    event: TransferEvent, token: Token, from_user: User, to_user: User
) -> Transfer:
    """Build the Transfer log record; gas_used is 0 when the receipt was unavailable."""
    ctx = event.context
    return Transfer(
        id=ctx.log_id,
        token=token.id,
        from_user=from_user.id,
        to_user=to_user.id,
        timestamp=ctx.block_timestamp,
        block_number=ctx.block_number,
        log_index=ctx.log_index,
        transaction_hash=ctx.transaction_hash.lower(),
        gas_price=ctx.gas_price,
        gas_used=ctx.gas_used if ctx.gas_used is not None else 0,
    )


def reduce_approval(
    event: ApprovalEvent, token: Token, owner: User, approved_user: User
) -> Approval:
    """Set or clear the single-token approval and build the Approval record.

    Approval never moves ownership, so no counters change.
    """
    ctx = event.context

    if is_zero_address(event.approved):
        token.approved = None
    else:
        token.approved = approved_user.id
    token.updated_at_timestamp = ctx.block_timestamp
    token.updated_at_block_number = ctx.block_number

    return Approval(
        id=ctx.log_id,
        token=token.id,
        owner=owner.id,
        approved=approved_user.id,
        timestamp=ctx.block_timestamp,
        block_number=ctx.block_number,
        log_index=ctx.log_index,
        transaction_hash=ctx.transaction_hash.lower(),
    )


def reduce_approval_for_all(
    event: ApprovalForAllEvent, contract: Contract, owner: User, operator: User
) -> ApprovalForAll:
    """Build the ApprovalForAll record. Operator approvals are not tracked on entities."""
    ctx = event.context
    return ApprovalForAll(
        id=ctx.log_id,
        contract=contract.id,
        owner=owner.id,
        operator=operator.id,
        approved=event.approved,
        timestamp=ctx.block_timestamp,
        block_number=ctx.block_number,
        log_index=ctx.log_index,
        transaction_hash=ctx.transaction_hash.lower(),
    )
