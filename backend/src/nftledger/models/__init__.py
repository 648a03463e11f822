"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
for Alembic autogenerate support.
"""

from nftledger.models.contract import Contract
from nftledger.models.event_log import Approval, ApprovalForAll, Transfer
from nftledger.models.system_state import SystemState
from nftledger.models.token import Token, TokenMetadata
from nftledger.models.user import User

__all__ = [
    "Contract",
    "Token",
    "TokenMetadata",
    "User",
    "Transfer",
    "Approval",
    "ApprovalForAll",
    "SystemState",
]
