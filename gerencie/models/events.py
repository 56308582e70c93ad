"""
Change Event Models

After every mutation the data-access adapter broadcasts a `db-change`
notification. Views listen for it and re-fetch whatever they display.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

DB_CHANGE = "db-change"


class ChangeAction(str, Enum):
    """What happened to the data."""
    INIT = "init"
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    RESET = "reset"


class Backend(str, Enum):
    """Which store served the operation."""
    REMOTE = "remote"
    LOCAL = "local"


class ChangeEvent(BaseModel):
    """A single change notification."""

    event_id: UUID = Field(default_factory=uuid4)
    name: str = DB_CHANGE
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the change happened (UTC)"
    )
    action: ChangeAction
    entity: Optional[str] = Field(
        default=None,
        description="Entity kind (transactions, debts, ...). None for init/reset."
    )
    entity_id: Optional[str] = None
    backend: Optional[Backend] = None

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to a dict for structured logging."""
        return {
            "event_id": str(self.event_id),
            "name": self.name,
            "changed_at": self.timestamp.isoformat(),
            "action": self.action.value,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "backend": self.backend.value if self.backend else None,
        }
