"""SystemState repository for the ledger store.

Provides data access methods for the SystemState key-value store.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from nftledger.models.system_state import SystemState


class SystemStateRepository:
    """Repository for SystemState key-value store.

    State values are stored as JSON and automatically serialized/deserialized.
    The indexer is the single writer, so set_state reads and writes the row
    within the caller's transaction instead of issuing a dialect-specific UPSERT.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_state(self, key: str) -> Any | None:
        """Retrieve state value for a key.

        Args:
            key: State key (e.g., "last_processed_event")

        Returns:
            Deserialized state value if found, None otherwise
        """
        state = await self.session.get(SystemState, key)
        return state.state_value if state else None

    async def set_state(self, key: str, value: dict[str, Any]) -> None:
        """Set state value for a key (insert or update).

        Args:
            key: State key (alphanumeric + underscores only)
            value: State value (must be JSON-serializable)
        """
        state = await self.session.get(SystemState, key)
        if state is None:
            state = SystemState.model_validate({"key": key, "state_value": value})
        else:
            state.state_value = value
            state.updated_at = datetime.now(timezone.utc)
        self.session.add(state)
        await self.session.flush()
