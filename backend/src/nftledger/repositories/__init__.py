"""Repository layer for the ledger store.

Provides data access abstractions for all domain entities.
No base classes - each repository is self-contained.
"""

from nftledger.repositories.contract import ContractRepository
from nftledger.repositories.event_log import (
    ApprovalForAllRepository,
    ApprovalRepository,
    TransferRepository,
)
from nftledger.repositories.system_state import SystemStateRepository
from nftledger.repositories.token import TokenMetadataRepository, TokenRepository
from nftledger.repositories.user import UserRepository

__all__ = [
    "ContractRepository",
    "TokenRepository",
    "TokenMetadataRepository",
    "UserRepository",
    "TransferRepository",
    "ApprovalRepository",
    "ApprovalForAllRepository",
    "SystemStateRepository",
]
