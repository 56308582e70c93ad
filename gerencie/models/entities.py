"""
Core Data Models for Gerencie

Every entity is a flat record identified by an opaque string id and
optionally tagged with a mode (Personal / Business) used only for filtering.

Records are serialized with camelCase keys (the in-app record shape, which
is what the local store persists). The remote table store uses snake_case
columns; translation happens in services.storage.naming.

The only invariant enforced here is that amounts are numeric. There is no
referential integrity: a transaction's category is matched to a Category
by name, as free text.
"""

import datetime as dt
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import to_jsonable_python


# =============================================================================
# ENUMS
# =============================================================================

class Mode(str, Enum):
    """Which set of books a record belongs to."""
    PERSONAL = "Personal"
    BUSINESS = "Business"


class EntityKind(str, Enum):
    """
    The six record categories.

    Values are the internal entity names, also used to build local store keys.
    """
    TRANSACTIONS = "transactions"
    SHOPPING = "shopping"
    MAINTENANCE = "maintenance"
    DEBTS = "debts"
    GOALS = "goals"
    CATEGORIES = "categories"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"


class AttachmentType(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"


class MaintenanceStatus(str, Enum):
    OVERDUE = "overdue"
    PENDING = "pending"
    UP_TO_DATE = "up_to_date"


# =============================================================================
# BASE RECORD
# =============================================================================

class Record(BaseModel):
    """
    Base class for every stored entity.

    `id` is None until the record has been added through a store.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    kind: ClassVar[EntityKind]

    id: Optional[str] = None
    mode: Optional[Mode] = None

    @model_validator(mode="before")
    @classmethod
    def _null_means_default(cls, data: Any) -> Any:
        """NULL columns fall back to the field default."""
        if not isinstance(data, dict):
            return data
        defaulted = set()
        for name, info in cls.model_fields.items():
            if not info.is_required() and info.default is not None:
                defaulted.update({name, info.alias or name})
        return {
            key: value for key, value in data.items()
            if value is not None or key not in defaulted
        }

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        """Build a model from a camelCase (or snake_case) record."""
        return cls.model_validate(record)

    @classmethod
    def partial_record(cls, updates: dict[str, Any]) -> dict[str, Any]:
        """
        Convert a partial update keyed by field names to record form.

        Keys may be given either as Python field names or as their
        camelCase aliases. Unknown keys raise KeyError.
        """
        by_alias = {
            (info.alias or name): name for name, info in cls.model_fields.items()
        }
        partial = {}
        for key, value in updates.items():
            if key in cls.model_fields:
                alias = cls.model_fields[key].alias or key
            elif key in by_alias:
                alias = key
            else:
                raise KeyError(f"Unknown field for {cls.__name__}: {key}")
            partial[alias] = to_jsonable_python(value)
        return partial

    def merged(self, updates: dict[str, Any]):
        """Return a validated copy with the given updates applied."""
        data = self.to_record()
        data.update(self.partial_record(updates))
        return type(self).from_record(data)


# =============================================================================
# ENTITIES
# =============================================================================

class Transaction(Record):
    """A single income or expense entry."""

    kind: ClassVar[EntityKind] = EntityKind.TRANSACTIONS

    description: str = Field(..., min_length=1)
    category: str = ""
    date: dt.date
    amount: float
    type: TransactionType = TransactionType.EXPENSE
    status: TransactionStatus = TransactionStatus.PAID
    attachment: Optional[str] = Field(
        default=None,
        description="Data URL of the receipt image or voice note"
    )
    attachment_type: Optional[AttachmentType] = None

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_paid(self) -> bool:
        return self.status == TransactionStatus.PAID


class Category(Record):
    """A spending or income category with an optional budget."""

    kind: ClassVar[EntityKind] = EntityKind.CATEGORIES

    name: str = Field(..., min_length=1)
    type: Optional[TransactionType] = None
    budget: float = 0.0
    spent: float = 0.0
    color: str = "bg-red-500"


class Debt(Record):
    """Money owed, paid down over time."""

    kind: ClassVar[EntityKind] = EntityKind.DEBTS

    name: str = Field(..., min_length=1)
    total_amount: float = 0.0
    remaining_amount: float = 0.0
    due_date: Optional[dt.date] = None
    interest_rate: float = 0.0

    @property
    def is_paid_off(self) -> bool:
        return self.remaining_amount <= 0


class Goal(Record):
    """A savings goal."""

    kind: ClassVar[EntityKind] = EntityKind.GOALS

    name: str = Field(..., min_length=1)
    target_amount: float = 0.0
    current_amount: float = 0.0
    deadline: Optional[dt.date] = None
    icon: Optional[str] = None


class ShoppingItem(Record):
    """An item on the recurring shopping list."""

    kind: ClassVar[EntityKind] = EntityKind.SHOPPING

    category: str = ""
    name: str = Field(..., min_length=1)
    unit: str = "un"
    ideal_qty: float = 1.0
    current_qty: float = 0.0
    price: float = 0.0

    @property
    def missing_qty(self) -> float:
        return max(0.0, self.ideal_qty - self.current_qty)


class MaintenanceItem(Record):
    """A vehicle maintenance task."""

    kind: ClassVar[EntityKind] = EntityKind.MAINTENANCE

    name: str = Field(..., min_length=1)
    system: str = ""
    status: MaintenanceStatus = MaintenanceStatus.PENDING
    due_in: str = Field(
        default="",
        description="Free text, e.g. '500 km' or '2 weeks'"
    )


ENTITY_MODELS: dict[EntityKind, type[Record]] = {
    EntityKind.TRANSACTIONS: Transaction,
    EntityKind.SHOPPING: ShoppingItem,
    EntityKind.MAINTENANCE: MaintenanceItem,
    EntityKind.DEBTS: Debt,
    EntityKind.GOALS: Goal,
    EntityKind.CATEGORIES: Category,
}
