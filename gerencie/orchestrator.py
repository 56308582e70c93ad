"""
Main Orchestrator for Gerencie

This module ties the storage adapter, the summaries and the AI agents
together and defines what each screen does:
1. Agent (text / image / audio → extract → record transaction → reply)
2. Transactions and expenses (recurring entries, duplicate, toggle paid)
3. Debts, goals, shopping list, vehicle maintenance, categories
4. Dashboard (totals → chart → advice)

DESIGN DECISION: flows only talk to storage through Database, so every
mutation goes through the remote/local fallback and emits a `db-change`
notification. Agents are built lazily: a missing Gemini key only breaks
the screens that need it.
"""

import random
from datetime import date
from typing import Callable, NamedTuple, Optional

import structlog

from gerencie.agents import ADVICE_ERROR, AdvisorAgent, TransactionAgent
from gerencie.config import get_settings
from gerencie.models.entities import (
    Category,
    Debt,
    Goal,
    MaintenanceItem,
    MaintenanceStatus,
    Mode,
    ShoppingItem,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from gerencie.models.finance import (
    AgentReply,
    DashboardSnapshot,
    MediaPayload,
)
from gerencie.queries import summary
from gerencie.services.storage import Database, LocalKeyValueStore

logger = structlog.get_logger(__name__)

CATEGORY_COLORS = [
    "bg-red-500",
    "bg-blue-500",
    "bg-green-500",
    "bg-yellow-500",
    "bg-purple-500",
    "bg-pink-500",
]

NOT_UNDERSTOOD = (
    "I could not understand the transaction. Try saying "
    "'I spent 50 on Uber' or send a photo of the receipt."
)
PROCESSING_ERROR = "An error occurred while processing your request. Please try again."

DEBT_PAYMENT_CATEGORY = "Debts"
GOAL_DEPOSIT_CATEGORY = "Investment"
MAINTENANCE_DONE = "Just done"


def format_money(amount: float, symbol: Optional[str] = None) -> str:
    symbol = symbol if symbol is not None else get_settings().app.currency_symbol
    return f"{symbol} {amount:,.2f}"


class AgentFlow:
    """
    Orchestrates the chat agent.

    Flow:
    1. Input → text and/or one media payload
    2. Extract → TransactionAgent proposes ONE transaction
    3. Save → recorded as paid, with the media kept as attachment
    4. Reply → confirmation, "could not understand" hint, or error

    The agent never writes; this flow does.
    """

    def __init__(
        self,
        db: Database,
        agent_factory: Callable[[], TransactionAgent] = TransactionAgent,
    ):
        self._db = db
        self._agent_factory = agent_factory
        self._agent: Optional[TransactionAgent] = None

    @property
    def agent(self) -> TransactionAgent:
        if self._agent is None:
            self._agent = self._agent_factory()
        return self._agent

    async def process_input(
        self,
        text: str,
        media: Optional[MediaPayload] = None,
        mode: Mode = Mode.PERSONAL,
    ) -> AgentReply:
        try:
            extracted = await self.agent.process_message(text, media, mode)
            if extracted is None:
                return AgentReply(text=NOT_UNDERSTOOD)

            tx = Transaction(
                description=extracted.description,
                amount=extracted.amount,
                type=extracted.type,
                category=extracted.category,
                date=extracted.date,
                status=TransactionStatus.PAID,
                mode=mode,
                attachment=media.to_data_url() if media else None,
                attachment_type=media.kind if media else None,
            )
            saved = await self._db.transactions.add(tx)
        except Exception as e:
            logger.error("agent_flow_failed", error=str(e))
            return AgentReply(text=PROCESSING_ERROR)

        logger.info(
            "agent_transaction_recorded",
            transaction_id=saved.id,
            type=saved.type.value,
            has_media=media is not None,
        )
        return AgentReply(
            text=(
                "Transaction recorded!\n\n"
                f"{saved.description}\n"
                f"{format_money(saved.amount)}\n"
                f"{saved.category}\n"
                f"{saved.date.isoformat()}"
            ),
            transaction=saved,
        )


class TransactionFlow:
    """Transactions and expenses screens."""

    def __init__(self, db: Database):
        self._db = db

    async def get_all(
        self,
        mode: Mode,
        search: str = "",
        type_filter: str = "all",
    ) -> list[Transaction]:
        items = await self._db.transactions.get_all(mode)
        return summary.sort_by_date_desc(
            summary.filter_transactions(items, search, type_filter)
        )

    async def expenses(self, mode: Mode) -> list[Transaction]:
        return await self.get_all(mode, type_filter=TransactionType.EXPENSE.value)

    async def add(self, tx: Transaction) -> Transaction:
        return await self._db.transactions.add(tx)

    async def add_expense(
        self,
        description: str,
        amount: float,
        category: str,
        first_date: date,
        mode: Mode,
        status: TransactionStatus = TransactionStatus.PENDING,
        repeat: int = 1,
    ) -> list[Transaction]:
        """
        Record an expense, optionally repeated monthly.

        With repeat > 1 the description gets an " (i/n)" suffix and each
        occurrence falls on the same day of the following months, clamped
        to the last day of shorter months.
        """
        if repeat < 1:
            raise ValueError("repeat must be at least 1")

        created = []
        for i in range(repeat):
            label = f"{description} ({i + 1}/{repeat})" if repeat > 1 else description
            tx = Transaction(
                description=label,
                amount=amount,
                category=category,
                date=summary.shift_month(first_date, i),
                type=TransactionType.EXPENSE,
                status=status,
                mode=mode,
            )
            created.append(await self._db.transactions.add(tx))
        return created

    async def duplicate(self, tx: Transaction, mode: Mode) -> Transaction:
        """Copy as a pending entry dated today."""
        copy = Transaction(
            description=f"{tx.description} (Copy)",
            amount=tx.amount,
            category=tx.category,
            date=date.today(),
            type=tx.type,
            status=TransactionStatus.PENDING,
            mode=mode,
        )
        return await self._db.transactions.add(copy)

    async def toggle_status(self, tx: Transaction) -> Optional[Transaction]:
        new_status = (
            TransactionStatus.PENDING if tx.is_paid else TransactionStatus.PAID
        )
        return await self._db.transactions.update(tx.id, {"status": new_status})

    async def update(self, tx_id: str, updates: dict) -> Optional[Transaction]:
        return await self._db.transactions.update(tx_id, updates)

    async def delete(self, tx_id: str) -> bool:
        return await self._db.transactions.delete(tx_id)


class DebtFlow:
    """Debts screen: register payments against a debt."""

    def __init__(self, db: Database):
        self._db = db

    async def get_all(self, mode: Mode) -> list[Debt]:
        return await self._db.debts.get_all(mode)

    async def add(self, debt: Debt) -> Debt:
        return await self._db.debts.add(debt)

    async def delete(self, debt_id: str) -> bool:
        return await self._db.debts.delete(debt_id)

    async def register_payment(
        self,
        debt: Debt,
        amount: float,
        mode: Mode,
        record_expense: bool = True,
    ) -> Optional[Debt]:
        """
        Reduce the remaining amount (never below zero).

        When record_expense is set, a paid expense is also recorded.
        """
        if amount <= 0:
            raise ValueError("Payment amount must be positive")

        remaining = max(0.0, debt.remaining_amount - amount)
        updated = await self._db.debts.update(debt.id, {"remaining_amount": remaining})

        if record_expense:
            await self._db.transactions.add(Transaction(
                description=f"Debt payment: {debt.name}",
                amount=amount,
                category=DEBT_PAYMENT_CATEGORY,
                date=date.today(),
                type=TransactionType.EXPENSE,
                status=TransactionStatus.PAID,
                mode=mode,
            ))

        logger.info("debt_payment_registered", debt_id=debt.id, remaining=remaining)
        return updated


class GoalFlow:
    """Goals screen: deposits towards a savings goal."""

    def __init__(self, db: Database):
        self._db = db

    async def get_all(self, mode: Mode) -> list[Goal]:
        return await self._db.goals.get_all(mode)

    async def add(self, goal: Goal) -> Goal:
        return await self._db.goals.add(goal)

    async def delete(self, goal_id: str) -> bool:
        return await self._db.goals.delete(goal_id)

    async def deposit(
        self,
        goal: Goal,
        amount: float,
        mode: Mode,
        record_expense: bool = True,
    ) -> Optional[Goal]:
        if amount <= 0:
            raise ValueError("Deposit amount must be positive")

        current = goal.current_amount + amount
        updated = await self._db.goals.update(goal.id, {"current_amount": current})

        if record_expense:
            await self._db.transactions.add(Transaction(
                description=f"Goal deposit: {goal.name}",
                amount=amount,
                category=GOAL_DEPOSIT_CATEGORY,
                date=date.today(),
                type=TransactionType.EXPENSE,
                status=TransactionStatus.PAID,
                mode=mode,
            ))

        return updated


class ShoppingFlow:
    """Shopping list screen."""

    def __init__(self, db: Database):
        self._db = db

    async def get_all(self, mode: Mode) -> list[ShoppingItem]:
        return await self._db.shopping.get_all(mode)

    async def add(self, item: ShoppingItem) -> ShoppingItem:
        return await self._db.shopping.add(item)

    async def delete(self, item_id: str) -> bool:
        return await self._db.shopping.delete(item_id)

    async def adjust_quantity(self, item: ShoppingItem, delta: float) -> Optional[ShoppingItem]:
        """Change the current quantity, floored at zero."""
        new_qty = max(0.0, item.current_qty + delta)
        return await self._db.shopping.update(item.id, {"current_qty": new_qty})

    @staticmethod
    def restock_cost(items: list[ShoppingItem]) -> float:
        return summary.restock_cost(items)


class MaintenanceFlow:
    """Vehicle maintenance screen."""

    def __init__(self, db: Database):
        self._db = db

    async def get_all(self, mode: Mode) -> list[MaintenanceItem]:
        return await self._db.maintenance.get_all(mode)

    async def add(self, item: MaintenanceItem) -> MaintenanceItem:
        return await self._db.maintenance.add(item)

    async def delete(self, item_id: str) -> bool:
        return await self._db.maintenance.delete(item_id)

    async def complete(self, item: MaintenanceItem) -> Optional[MaintenanceItem]:
        return await self._db.maintenance.update(
            item.id,
            {"status": MaintenanceStatus.UP_TO_DATE, "due_in": MAINTENANCE_DONE},
        )


class CategoryFlow:
    """Categories and budgets screen."""

    def __init__(self, db: Database, rng: Optional[random.Random] = None):
        self._db = db
        self._rng = rng or random.Random()

    async def get_all(self, mode: Mode) -> list[Category]:
        return await self._db.categories.get_all(mode)

    async def usage(self, mode: Mode) -> list[tuple[Category, float, Optional[float]]]:
        """(category, spent, budget usage %) for every category in the mode."""
        categories = await self._db.categories.get_all(mode)
        transactions = await self._db.transactions.get_all(mode)
        result = []
        for category in categories:
            spent = summary.category_spent(category, transactions)
            result.append((category, spent, summary.budget_usage(category, spent)))
        return result

    async def add(
        self,
        name: str,
        budget: float,
        type: Optional[TransactionType],
        mode: Mode,
    ) -> Category:
        category = Category(
            name=name,
            budget=budget,
            type=type,
            spent=0.0,
            color=self._rng.choice(CATEGORY_COLORS),
            mode=mode,
        )
        return await self._db.categories.add(category)

    async def delete(self, category_id: str) -> bool:
        return await self._db.categories.delete(category_id)


class DashboardFlow:
    """
    Dashboard screen.

    Totals are computed locally; only the advice goes to the LLM, and it
    only ever sees those totals.
    """

    RECENT_LIMIT = 5

    def __init__(
        self,
        db: Database,
        advisor_factory: Callable[[], AdvisorAgent] = AdvisorAgent,
    ):
        self._db = db
        self._advisor_factory = advisor_factory
        self._advisor: Optional[AdvisorAgent] = None

    async def load(self, mode: Mode) -> DashboardSnapshot:
        transactions = await self._db.transactions.get_all(mode)
        data = summary.summarize(transactions)
        return DashboardSnapshot(
            data=data,
            chart=summary.weekly_chart(data, bool(transactions)),
            recent=summary.sort_by_date_desc(transactions)[: self.RECENT_LIMIT],
        )

    async def advice(self, mode: Mode) -> str:
        snapshot = await self.load(mode)
        try:
            if self._advisor is None:
                self._advisor = self._advisor_factory()
        except Exception as e:
            logger.error("advisor_unavailable", error=str(e))
            return ADVICE_ERROR

        return await self._advisor.get_financial_advice(
            mode, snapshot.data.model_dump()
        )


class AppComponents(NamedTuple):
    db: Database
    agent: AgentFlow
    transactions: TransactionFlow
    debts: DebtFlow
    goals: GoalFlow
    shopping: ShoppingFlow
    maintenance: MaintenanceFlow
    categories: CategoryFlow
    dashboard: DashboardFlow


def create_app_components(db: Optional[Database] = None) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        db: Database to use. If None, one is built from settings: the local
            store lives in `data_dir`, and the remote store is used when
            credentials are saved or present in the environment.

    Returns:
        AppComponents with every flow wired to the same Database
    """
    if db is None:
        settings = get_settings()
        app_settings = settings.app
        db = Database(
            kv=LocalKeyValueStore(app_settings.data_dir),
            supabase_settings=settings.supabase,
            latency_seconds=app_settings.local_latency_seconds,
        )

    return AppComponents(
        db=db,
        agent=AgentFlow(db),
        transactions=TransactionFlow(db),
        debts=DebtFlow(db),
        goals=GoalFlow(db),
        shopping=ShoppingFlow(db),
        maintenance=MaintenanceFlow(db),
        categories=CategoryFlow(db),
        dashboard=DashboardFlow(db),
    )
