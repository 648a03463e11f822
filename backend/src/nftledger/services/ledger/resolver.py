"""Get-or-create access to Contract, Token and User entities.

Creation-time default-field policy:
- Contract: total_supply=0, name/symbol read from the chain (left unset on revert),
  created_at_* from the triggering event. Persisted as soon as it is created.
- Token: owner=zero address, all timestamps and blocks 0. The reducer handling the
  triggering event overwrites them.
- User: all counters 0, first_transaction_* from the triggering event.

Existing entities are returned unchanged. Within one resolver (one event) the
same key always yields the same instance, so a self-transfer mutates one User.
"""

import structlog

from nftledger.models.contract import Contract
from nftledger.models.token import Token
from nftledger.models.user import User
from nftledger.services.blockchain.chain_reader import ChainReader
from nftledger.services.ledger.events import (
    ZERO_ADDRESS,
    EventContext,
    normalize_address,
    token_key,
)
from nftledger.uow import UnitOfWork

logger = structlog.get_logger()


class EntityResolver:
    """Loads entities through the unit of work, creating them on first reference."""

    def __init__(self, uow: UnitOfWork, chain_reader: ChainReader):
        """Initialize resolver for one event.

        Args:
            uow: Unit of Work of the event being processed
            chain_reader: Reader for name()/symbol() on new contracts
        """
        self.uow = uow
        self.chain_reader = chain_reader
        self._contracts: dict[str, Contract] = {}
        self._tokens: dict[str, Token] = {}
        self._users: dict[str, User] = {}

    async def get_or_create_contract(
        self, address: str, context: EventContext | None = None
    ) -> Contract:
        """Load a contract, creating and persisting it on first reference.

        Args:
            address: Contract address (any case)
            context: Event that referenced the contract, stamps created_at_*

        Returns:
            Stored or newly created contract

        Raises:
            BlockchainConnectionError: If name()/symbol() fail for a reason other than a revert
        """
        key = normalize_address(address)
        if key in self._contracts:
            return self._contracts[key]

        contract = await self.uow.contracts.get(key)
        if contract is None:
            contract = Contract(
                id=key,
                total_supply=0,
                created_at_timestamp=context.block_timestamp if context else 0,
                created_at_block_number=context.block_number if context else 0,
            )

            name_result = self.chain_reader.try_call(address, "name")
            if not name_result.reverted:
                contract.name = name_result.value

            symbol_result = self.chain_reader.try_call(address, "symbol")
            if not symbol_result.reverted:
                contract.symbol = symbol_result.value

            await self.uow.contracts.upsert(contract)
            logger.info(
                "contract.created",
                contract=key,
                name=contract.name,
                symbol=contract.symbol,
            )

        self._contracts[key] = contract
        return contract

    async def get_or_create_token(self, token_id: int, contract_address: str) -> Token:
        """Load a token, creating an unsaved default one on first reference.

        Args:
            token_id: On-chain token ID
            contract_address: Address of the owning contract

        Returns:
            Stored or newly created token
        """
        key = token_key(contract_address, token_id)
        if key in self._tokens:
            return self._tokens[key]

        token = await self.uow.tokens.get(key)
        if token is None:
            token = Token(
                id=key,
                contract=normalize_address(contract_address),
                token_id=str(token_id),
                owner=ZERO_ADDRESS,
                created_at_timestamp=0,
                created_at_block_number=0,
                updated_at_timestamp=0,
                updated_at_block_number=0,
            )

        self._tokens[key] = token
        return token

    async def get_or_create_user(self, address: str, context: EventContext | None = None) -> User:
        """Load a user, creating an unsaved zero-counter one on first reference.

        Args:
            address: Wallet address (any case)
            context: Event that referenced the user, stamps first_transaction_*

        Returns:
            Stored or newly created user
        """
        key = normalize_address(address)
        if key in self._users:
            return self._users[key]

        user = await self.uow.users.get(key)
        if user is None:
            user = User(
                id=key,
                address=key,
                total_tokens_owned=0,
                total_tokens_sent=0,
                total_tokens_received=0,
                first_transaction_timestamp=context.block_timestamp if context else 0,
                first_transaction_block_number=context.block_number if context else 0,
            )

        self._users[key] = user
        return user
