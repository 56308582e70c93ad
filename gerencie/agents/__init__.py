"""AI Agents package."""

from gerencie.agents.ai_agents import (
    ADVICE_ERROR,
    ADVICE_UNAVAILABLE,
    SUGGESTED_CATEGORIES,
    AdvisorAgent,
    TransactionAgent,
)

__all__ = [
    "ADVICE_ERROR",
    "ADVICE_UNAVAILABLE",
    "SUGGESTED_CATEGORIES",
    "AdvisorAgent",
    "TransactionAgent",
]
