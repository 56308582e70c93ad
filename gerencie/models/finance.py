"""
Derived and transient models.

These never go to storage directly: they are what the LLM layer returns,
what the dashboard computes, and what the agent replies with.
"""

import base64
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gerencie.models.entities import AttachmentType, Transaction, TransactionType


class MediaPayload(BaseModel):
    """Inline image or audio bytes sent along with a prompt."""

    data: bytes
    mime_type: str

    @field_validator("mime_type")
    @classmethod
    def normalize_mime_type(cls, v: str) -> str:
        v = v.strip().lower()
        if not (v.startswith("image/") or v.startswith("audio/")):
            raise ValueError(f"Unsupported media type: {v}. Send an image or an audio file.")
        return v

    @property
    def kind(self) -> AttachmentType:
        if self.mime_type.startswith("image"):
            return AttachmentType.IMAGE
        return AttachmentType.AUDIO

    @property
    def is_audio(self) -> bool:
        return "audio" in self.mime_type

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class ExtractedTransaction(BaseModel):
    """
    Transaction-like record parsed from the LLM response.

    This is PROPOSED data. The agent flow turns it into a Transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1)
    amount: float
    type: TransactionType = TransactionType.EXPENSE
    category: str = "Other"
    date: dt.date = Field(default_factory=dt.date.today)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v):
        return v or "Other"


class FinancialData(BaseModel):
    """Dashboard totals for one mode."""

    income: float = 0.0
    expenses: float = 0.0
    balance: float = 0.0
    pending_expenses: float = 0.0
    health_score: str = "No Data"

    @property
    def balance_positive(self) -> bool:
        return self.balance >= 0


class ChartPoint(BaseModel):
    """One bucket of an income vs. expense chart."""

    name: str
    income: float = 0.0
    expense: float = 0.0


class AgentReply(BaseModel):
    """What the chat agent answers after processing one input."""

    text: str
    transaction: Optional[Transaction] = None

    @property
    def recorded(self) -> bool:
        return self.transaction is not None


class DashboardSnapshot(BaseModel):
    """Everything the dashboard page renders for one mode."""

    data: FinancialData
    chart: list[ChartPoint] = Field(default_factory=list)
    recent: list[Transaction] = Field(default_factory=list)

    @property
    def has_transactions(self) -> bool:
        return bool(self.recent)
