"""Per-event-kind handlers.

Each handler materializes the entities its event touches, applies the matching
reducer and persists everything in a fixed order inside the caller's unit of work.
"""

import structlog

from nftledger.models.event_log import Approval, ApprovalForAll, Transfer
from nftledger.services.ledger.events import ApprovalEvent, ApprovalForAllEvent, TransferEvent
from nftledger.services.ledger.reducers import (
    TransferKind,
    build_transfer_record,
    reduce_approval,
    reduce_approval_for_all,
    reduce_transfer,
)
from nftledger.services.ledger.resolver import EntityResolver
from nftledger.services.metadata.enricher import MetadataEnricher
from nftledger.uow import UnitOfWork

logger = structlog.get_logger()


async def handle_transfer(
    event: TransferEvent,
    uow: UnitOfWork,
    resolver: EntityResolver,
    enricher: MetadataEnricher,
) -> Transfer:
    """Fold a Transfer event into contract supply, user counters and token ownership.

    Persist order: contract (mint/burn only), token metadata, sender, recipient,
    token, transfer record.

    Args:
        event: Decoded Transfer event
        uow: Unit of Work of this event
        resolver: Get-or-create access to entities
        enricher: tokenURI and metadata resolution (best-effort)

    Returns:
        The appended Transfer record
    """
    ctx = event.context
    contract = await resolver.get_or_create_contract(event.contract_address, ctx)
    token = await resolver.get_or_create_token(event.token_id, event.contract_address)
    from_user = await resolver.get_or_create_user(event.from_address, ctx)
    to_user = await resolver.get_or_create_user(event.to_address, ctx)

    kind = reduce_transfer(event, contract, token, from_user, to_user)
    if kind is not TransferKind.TRANSFER:
        await uow.contracts.upsert(contract)

    token_uri = enricher.fetch_token_uri(event.contract_address, event.token_id)
    if token_uri:
        token.token_uri = token_uri
        metadata = await enricher.resolve_metadata(token_uri, token.id)
        if metadata is not None:
            metadata = await uow.token_metadata.upsert(metadata)
            token.metadata_id = metadata.id

    transfer = build_transfer_record(event, token, from_user, to_user)

    await uow.users.upsert(from_user)
    await uow.users.upsert(to_user)
    await uow.tokens.upsert(token)
    await uow.transfers.append(transfer)

    logger.info(
        f"transfer.{kind.value}",
        token=token.id,
        from_user=from_user.id,
        to_user=to_user.id,
        block_number=ctx.block_number,
        total_supply=contract.total_supply,
        has_metadata=token.metadata_id is not None,
    )
    return transfer


async def handle_approval(
    event: ApprovalEvent,
    uow: UnitOfWork,
    resolver: EntityResolver,
) -> Approval:
    """Set or clear a token's single approval and append the Approval record."""
    token = await resolver.get_or_create_token(event.token_id, event.contract_address)
    owner = await resolver.get_or_create_user(event.owner, event.context)
    approved_user = await resolver.get_or_create_user(event.approved, event.context)

    approval = reduce_approval(event, token, owner, approved_user)

    await uow.users.upsert(owner)
    await uow.users.upsert(approved_user)
    await uow.tokens.upsert(token)
    await uow.approvals.append(approval)

    logger.info(
        "approval.applied",
        token=token.id,
        owner=owner.id,
        approved=token.approved,
        block_number=event.context.block_number,
    )
    return approval


async def handle_approval_for_all(
    event: ApprovalForAllEvent,
    uow: UnitOfWork,
    resolver: EntityResolver,
) -> ApprovalForAll:
    """Append an operator approval record, creating contract and users on first reference."""
    contract = await resolver.get_or_create_contract(event.contract_address, event.context)
    owner = await resolver.get_or_create_user(event.owner, event.context)
    operator = await resolver.get_or_create_user(event.operator, event.context)

    approval_for_all = reduce_approval_for_all(event, contract, owner, operator)

    await uow.users.upsert(owner)
    await uow.users.upsert(operator)
    await uow.approvals_for_all.append(approval_for_all)

    logger.info(
        "approval_for_all.applied",
        contract=contract.id,
        owner=owner.id,
        operator=operator.id,
        approved=event.approved,
        block_number=event.context.block_number,
    )
    return approval_for_all
