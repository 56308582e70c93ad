"""
Data Models Package

Pydantic models for stored entities, derived finance data and change events.
"""

from gerencie.models.entities import (
    ENTITY_MODELS,
    AttachmentType,
    Category,
    Debt,
    EntityKind,
    Goal,
    MaintenanceItem,
    MaintenanceStatus,
    Mode,
    Record,
    ShoppingItem,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from gerencie.models.events import (
    DB_CHANGE,
    Backend,
    ChangeAction,
    ChangeEvent,
)
from gerencie.models.finance import (
    AgentReply,
    ChartPoint,
    DashboardSnapshot,
    ExtractedTransaction,
    FinancialData,
    MediaPayload,
)

__all__ = [
    # Entities
    "ENTITY_MODELS",
    "AttachmentType",
    "Category",
    "Debt",
    "EntityKind",
    "Goal",
    "MaintenanceItem",
    "MaintenanceStatus",
    "Mode",
    "Record",
    "ShoppingItem",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    # Events
    "DB_CHANGE",
    "Backend",
    "ChangeAction",
    "ChangeEvent",
    # Finance
    "AgentReply",
    "ChartPoint",
    "DashboardSnapshot",
    "ExtractedTransaction",
    "FinancialData",
    "MediaPayload",
]
