"""
Streamlit Frontend for Gerencie

One page per concept, picked from the sidebar. The mode selector
(Personal / Business) filters every list.

DESIGN PRINCIPLES:
1. Every page loads its data on each render
2. Every mutation is followed by st.rerun(), so all pages see fresh data
3. Storage problems never show up here: the adapter falls back to the
   local store and only logs
"""

import asyncio
from datetime import date

import streamlit as st

from gerencie.config import get_settings, validate_all_settings
from gerencie.models import (
    Debt,
    Goal,
    MaintenanceItem,
    MaintenanceStatus,
    MediaPayload,
    Mode,
    ShoppingItem,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from gerencie.orchestrator import AppComponents, create_app_components, format_money
from gerencie.queries import summary
from gerencie.services.storage import SCHEMA_SQL, check_connection


# Page configuration
st.set_page_config(
    page_title="Gerencie",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .advice-box {
        padding: 20px;
        background: linear-gradient(90deg, #7f1d1d, #881337);
        color: white;
        border-radius: 10px;
        margin: 10px 0;
    }
    .agent-bubble {
        padding: 12px 16px;
        background-color: #202c33;
        color: #e9edef;
        border-radius: 10px;
        margin: 6px 0;
        white-space: pre-wrap;
    }
    .user-bubble {
        padding: 12px 16px;
        background-color: #005c4b;
        color: #e9edef;
        border-radius: 10px;
        margin: 6px 0 6px 20%;
        white-space: pre-wrap;
    }
</style>
""", unsafe_allow_html=True)


PAGES = [
    "📊 Dashboard",
    "💸 Transactions",
    "🧾 Expenses",
    "🏷️ Categories",
    "💳 Debts",
    "🎯 Goals",
    "🛒 Shopping List",
    "🚗 Vehicle",
    "📈 Reports",
    "🤖 Agent",
    "🗄️ Database",
]

AGENT_GREETING = (
    "Hi! I am your financial assistant. Send a receipt photo, an audio "
    "or a text and I will record your transactions."
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    components = create_app_components()
    run_async(components.db.init())
    return components


def money(amount: float) -> str:
    return format_money(amount)


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("💰 Gerencie")
    modes = list(Mode)
    try:
        default_index = modes.index(Mode(get_settings().app.default_mode))
    except ValueError:
        default_index = 0
    mode = st.sidebar.radio(
        "Mode",
        modes,
        index=default_index,
        format_func=lambda m: m.value,
        horizontal=True,
    )
    st.sidebar.markdown("---")

    page = st.sidebar.radio("Navigate to:", PAGES, index=0)

    st.sidebar.markdown("---")
    backend = "☁️ Supabase" if components.db.is_remote_configured else "💾 Local storage"
    st.sidebar.caption(f"Storage: {backend}")

    renderers = {
        "📊 Dashboard": render_dashboard_page,
        "💸 Transactions": render_transactions_page,
        "🧾 Expenses": render_expenses_page,
        "🏷️ Categories": render_categories_page,
        "💳 Debts": render_debts_page,
        "🎯 Goals": render_goals_page,
        "🛒 Shopping List": render_shopping_page,
        "🚗 Vehicle": render_vehicle_page,
        "📈 Reports": render_reports_page,
        "🤖 Agent": render_agent_page,
        "🗄️ Database": render_database_page,
    }
    renderers[page](components, mode)


def render_dashboard_page(components: AppComponents, mode: Mode):
    """Render the dashboard."""
    st.title("📊 Dashboard")
    snapshot = run_async(components.dashboard.load(mode))
    data = snapshot.data

    badge = "🟢" if data.balance_positive else "🔴"
    st.markdown(f"### Balance: {money(data.balance)} {badge}")
    st.caption(f"{mode.value} finances")

    # Advice
    if "advice" not in st.session_state:
        st.session_state.advice = {}
    advice = st.session_state.advice.get(mode)
    st.markdown(
        f'<div class="advice-box"><h4>🤖 Financial advisor</h4>'
        f'<p>{advice or "Ask for a quick analysis of your numbers."}</p></div>',
        unsafe_allow_html=True,
    )
    if st.button("✨ Analyze my finances", disabled=not snapshot.has_transactions):
        with st.spinner("Analyzing..."):
            st.session_state.advice[mode] = run_async(components.dashboard.advice(mode))
        st.rerun()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", money(data.income))
    col2.metric("Expenses", money(data.expenses))
    col3.metric("Pending expenses", money(data.pending_expenses))
    col4.metric("Health", data.health_score)

    st.markdown("### Cash flow")
    st.bar_chart(
        [point.model_dump() for point in snapshot.chart],
        x="name",
        y=["income", "expense"],
    )

    st.markdown("### Recent transactions")
    if not snapshot.recent:
        st.info("No transactions yet.")
    for tx in snapshot.recent:
        sign = "+" if tx.is_income else "-"
        st.markdown(
            f"**{tx.description}** · {tx.category} · {tx.date.isoformat()} · "
            f"{sign}{money(tx.amount)}"
        )


def _transaction_row(components: AppComponents, tx: Transaction, mode: Mode, key: str):
    col1, col2, col3, col4, col5 = st.columns([4, 2, 2, 1, 1])
    sign = "+" if tx.is_income else "-"
    col1.markdown(f"**{tx.description}**  \n{tx.category} · {tx.date.isoformat()}")
    col2.markdown(f"{sign}{money(tx.amount)}")
    status_label = "✅ Paid" if tx.is_paid else "⏳ Pending"
    if col3.button(status_label, key=f"{key}-toggle-{tx.id}"):
        run_async(components.transactions.toggle_status(tx))
        st.rerun()
    if col4.button("📄", key=f"{key}-dup-{tx.id}", help="Duplicate"):
        run_async(components.transactions.duplicate(tx, mode))
        st.rerun()
    if col5.button("🗑️", key=f"{key}-del-{tx.id}", help="Delete"):
        run_async(components.transactions.delete(tx.id))
        st.rerun()
    if tx.attachment and tx.attachment_type:
        with st.expander("📎 Attachment"):
            if tx.attachment_type.value == "image":
                st.image(tx.attachment, width=300)
            else:
                st.audio(tx.attachment)


def render_transactions_page(components: AppComponents, mode: Mode):
    """Render the transactions list."""
    st.title("💸 Transactions")

    with st.expander("➕ New transaction"):
        with st.form("new-transaction", clear_on_submit=True):
            description = st.text_input("Description *")
            col1, col2 = st.columns(2)
            amount = col1.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            tx_type = col2.selectbox("Type", list(TransactionType), format_func=lambda t: t.value.title())
            category = col1.text_input("Category")
            tx_date = col2.date_input("Date", value=date.today())
            paid = st.checkbox("Already paid", value=True)
            if st.form_submit_button("Save", type="primary"):
                if not description or amount <= 0:
                    st.error("Please enter a description and a valid amount")
                else:
                    run_async(components.transactions.add(Transaction(
                        description=description,
                        amount=amount,
                        type=tx_type,
                        category=category,
                        date=tx_date,
                        status=TransactionStatus.PAID if paid else TransactionStatus.PENDING,
                        mode=mode,
                    )))
                    st.rerun()

    col1, col2 = st.columns([3, 1])
    search = col1.text_input("Search", placeholder="Description or category")
    type_filter = col2.selectbox("Type", list(summary.TYPE_FILTERS), format_func=str.title, key="tx-type-filter")

    items = run_async(components.transactions.get_all(mode, search, type_filter))
    st.markdown("---")
    if not items:
        st.info("No transactions found.")
    for tx in items:
        _transaction_row(components, tx, mode, "tx")


def render_expenses_page(components: AppComponents, mode: Mode):
    """Render the expenses page (with recurring expenses)."""
    st.title("🧾 Expenses")

    items = run_async(components.transactions.expenses(mode))
    paid, pending = summary.paid_and_pending(items)
    col1, col2, col3 = st.columns(3)
    col1.metric("Total", money(paid + pending))
    col2.metric("Paid", money(paid))
    col3.metric("Pending", money(pending))

    with st.expander("➕ New expense"):
        with st.form("new-expense", clear_on_submit=True):
            description = st.text_input("Description *")
            col1, col2 = st.columns(2)
            amount = col1.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            category = col2.text_input("Category")
            first_date = col1.date_input("Due date", value=date.today())
            repeat = col2.number_input("Repeat for how many months", min_value=1, max_value=60, value=1)
            paid_now = st.checkbox("Already paid", value=False)
            if st.form_submit_button("Save", type="primary"):
                if not description or amount <= 0:
                    st.error("Please enter a description and a valid amount")
                else:
                    run_async(components.transactions.add_expense(
                        description=description,
                        amount=amount,
                        category=category,
                        first_date=first_date,
                        mode=mode,
                        status=TransactionStatus.PAID if paid_now else TransactionStatus.PENDING,
                        repeat=int(repeat),
                    ))
                    st.rerun()

    st.markdown("---")
    if not items:
        st.info("No expenses recorded.")
    for tx in items:
        _transaction_row(components, tx, mode, "exp")


def render_categories_page(components: AppComponents, mode: Mode):
    """Render categories and budgets."""
    st.title("🏷️ Categories")

    with st.expander("➕ New category"):
        with st.form("new-category", clear_on_submit=True):
            name = st.text_input("Name *")
            col1, col2 = st.columns(2)
            budget = col1.number_input("Monthly budget", min_value=0.0, step=10.0)
            cat_type = col2.selectbox("Type", list(TransactionType), format_func=lambda t: t.value.title())
            if st.form_submit_button("Save", type="primary"):
                if not name:
                    st.error("Please enter a name")
                else:
                    run_async(components.categories.add(name, budget, cat_type, mode))
                    st.rerun()

    usage = run_async(components.categories.usage(mode))
    if not usage:
        st.info("No categories yet.")
    for category, spent, percent in usage:
        col1, col2 = st.columns([5, 1])
        col1.markdown(f"**{category.name}** · spent {money(spent)}")
        if percent is not None:
            col1.progress(min(percent, 100.0) / 100, text=f"{percent:.0f}% of {money(category.budget)}")
        if col2.button("🗑️", key=f"cat-del-{category.id}"):
            run_async(components.categories.delete(category.id))
            st.rerun()


def render_debts_page(components: AppComponents, mode: Mode):
    """Render debts."""
    st.title("💳 Debts")

    debts = run_async(components.debts.get_all(mode))
    st.metric("Total remaining", money(summary.total_remaining_debt(debts)))

    with st.expander("➕ New debt"):
        with st.form("new-debt", clear_on_submit=True):
            name = st.text_input("Name *")
            col1, col2 = st.columns(2)
            total = col1.number_input("Total amount *", min_value=0.0, step=10.0)
            remaining = col2.number_input("Remaining amount", min_value=0.0, step=10.0)
            due = col1.date_input("Due date", value=None)
            rate = col2.number_input("Interest rate (% per month)", min_value=0.0, step=0.1)
            if st.form_submit_button("Save", type="primary"):
                if not name or total <= 0:
                    st.error("Please enter a name and a valid amount")
                else:
                    run_async(components.debts.add(Debt(
                        name=name,
                        total_amount=total,
                        remaining_amount=remaining or total,
                        due_date=due,
                        interest_rate=rate,
                        mode=mode,
                    )))
                    st.rerun()

    for debt in debts:
        st.markdown("---")
        progress = summary.debt_progress(debt)
        st.markdown(f"**{debt.name}** · remaining {money(debt.remaining_amount)} of {money(debt.total_amount)}")
        st.progress(progress / 100, text=f"{progress:.0f}% paid")
        col1, col2, col3 = st.columns([2, 2, 1])
        amount = col1.number_input("Payment", min_value=0.0, step=10.0, key=f"debt-amt-{debt.id}")
        record = col2.checkbox("Record as expense", value=True, key=f"debt-rec-{debt.id}")
        if col1.button("💰 Register payment", key=f"debt-pay-{debt.id}", disabled=debt.is_paid_off):
            if amount > 0:
                run_async(components.debts.register_payment(debt, amount, mode, record))
                st.rerun()
        if col3.button("🗑️", key=f"debt-del-{debt.id}"):
            run_async(components.debts.delete(debt.id))
            st.rerun()


def render_goals_page(components: AppComponents, mode: Mode):
    """Render savings goals."""
    st.title("🎯 Goals")

    with st.expander("➕ New goal"):
        with st.form("new-goal", clear_on_submit=True):
            name = st.text_input("Name *")
            col1, col2 = st.columns(2)
            target = col1.number_input("Target amount *", min_value=0.0, step=100.0)
            current = col2.number_input("Already saved", min_value=0.0, step=100.0)
            deadline = col1.date_input("Deadline", value=None)
            icon = col2.text_input("Icon", value="🎯")
            if st.form_submit_button("Save", type="primary"):
                if not name or target <= 0:
                    st.error("Please enter a name and a valid target")
                else:
                    run_async(components.goals.add(Goal(
                        name=name,
                        target_amount=target,
                        current_amount=current,
                        deadline=deadline,
                        icon=icon or None,
                        mode=mode,
                    )))
                    st.rerun()

    goals = run_async(components.goals.get_all(mode))
    if not goals:
        st.info("No goals yet.")
    for goal in goals:
        st.markdown("---")
        progress = summary.goal_progress(goal)
        st.markdown(f"{goal.icon or '🎯'} **{goal.name}** · {money(goal.current_amount)} of {money(goal.target_amount)}")
        st.progress(progress / 100, text=f"{progress:.0f}%")
        col1, col2, col3 = st.columns([2, 2, 1])
        amount = col1.number_input("Deposit", min_value=0.0, step=50.0, key=f"goal-amt-{goal.id}")
        record = col2.checkbox("Record as expense", value=True, key=f"goal-rec-{goal.id}")
        if col1.button("➕ Deposit", key=f"goal-dep-{goal.id}"):
            if amount > 0:
                run_async(components.goals.deposit(goal, amount, mode, record))
                st.rerun()
        if col3.button("🗑️", key=f"goal-del-{goal.id}"):
            run_async(components.goals.delete(goal.id))
            st.rerun()


def render_shopping_page(components: AppComponents, mode: Mode):
    """Render the shopping list."""
    st.title("🛒 Shopping List")

    items = run_async(components.shopping.get_all(mode))
    st.metric("Restock cost", money(components.shopping.restock_cost(items)))

    with st.expander("➕ New item"):
        with st.form("new-item", clear_on_submit=True):
            name = st.text_input("Name *")
            col1, col2, col3 = st.columns(3)
            category = col1.text_input("Category")
            unit = col2.text_input("Unit", value="un")
            price = col3.number_input("Price", min_value=0.0, step=0.5)
            ideal = col1.number_input("Ideal quantity", min_value=0.0, value=1.0, step=1.0)
            current = col2.number_input("Current quantity", min_value=0.0, step=1.0)
            if st.form_submit_button("Save", type="primary"):
                if not name:
                    st.error("Please enter a name")
                else:
                    run_async(components.shopping.add(ShoppingItem(
                        name=name,
                        category=category,
                        unit=unit or "un",
                        ideal_qty=ideal,
                        current_qty=current,
                        price=price,
                        mode=mode,
                    )))
                    st.rerun()

    for item in items:
        col1, col2, col3, col4, col5 = st.columns([4, 2, 1, 1, 1])
        col1.markdown(f"**{item.name}** · {item.category}  \nmissing {item.missing_qty:g} {item.unit}")
        col2.markdown(f"{item.current_qty:g}/{item.ideal_qty:g} {item.unit}")
        if col3.button("➖", key=f"shop-dec-{item.id}"):
            run_async(components.shopping.adjust_quantity(item, -1))
            st.rerun()
        if col4.button("➕", key=f"shop-inc-{item.id}"):
            run_async(components.shopping.adjust_quantity(item, 1))
            st.rerun()
        if col5.button("🗑️", key=f"shop-del-{item.id}"):
            run_async(components.shopping.delete(item.id))
            st.rerun()


def render_vehicle_page(components: AppComponents, mode: Mode):
    """Render vehicle maintenance."""
    st.title("🚗 Vehicle")

    status_icons = {
        MaintenanceStatus.OVERDUE: "🔴 Overdue",
        MaintenanceStatus.PENDING: "🟡 Pending",
        MaintenanceStatus.UP_TO_DATE: "🟢 Up to date",
    }

    with st.expander("➕ New maintenance item"):
        with st.form("new-maintenance", clear_on_submit=True):
            name = st.text_input("Name *")
            col1, col2 = st.columns(2)
            system = col1.text_input("System", placeholder="Engine, brakes...")
            due_in = col2.text_input("Due in", placeholder="500 km")
            status = st.selectbox("Status", list(MaintenanceStatus), format_func=lambda s: status_icons[s])
            if st.form_submit_button("Save", type="primary"):
                if not name:
                    st.error("Please enter a name")
                else:
                    run_async(components.maintenance.add(MaintenanceItem(
                        name=name,
                        system=system,
                        due_in=due_in,
                        status=status,
                        mode=mode,
                    )))
                    st.rerun()

    items = run_async(components.maintenance.get_all(mode))
    if not items:
        st.info("No maintenance items yet.")
    for item in items:
        col1, col2, col3, col4 = st.columns([4, 2, 1, 1])
        col1.markdown(f"**{item.name}** · {item.system}  \n{item.due_in}")
        col2.markdown(status_icons[item.status])
        if col3.button("✅", key=f"mnt-done-{item.id}", help="Mark as done"):
            run_async(components.maintenance.complete(item))
            st.rerun()
        if col4.button("🗑️", key=f"mnt-del-{item.id}"):
            run_async(components.maintenance.delete(item.id))
            st.rerun()


def render_reports_page(components: AppComponents, mode: Mode):
    """Render reports."""
    st.title("📈 Reports")

    transactions = run_async(components.db.transactions.get_all(mode))
    if not transactions:
        st.info("Reports appear once you record transactions.")
        return

    st.markdown("### Last 6 months")
    st.bar_chart(
        [point.model_dump() for point in summary.monthly_totals(transactions)],
        x="name",
        y=["income", "expense"],
    )

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### Expenses by category")
        for name, total in summary.category_totals(transactions).items():
            st.markdown(f"- **{name}**: {money(total)}")
    with col2:
        st.markdown("### Income by category")
        for name, total in summary.category_totals(transactions, TransactionType.INCOME).items():
            st.markdown(f"- **{name}**: {money(total)}")


def render_agent_page(components: AppComponents, mode: Mode):
    """Render the chat agent."""
    st.title("🤖 Agent")
    app_settings = get_settings().app

    if "agent_messages" not in st.session_state:
        st.session_state.agent_messages = [("agent", AGENT_GREETING)]

    for sender, text in st.session_state.agent_messages:
        css = "agent-bubble" if sender == "agent" else "user-bubble"
        st.markdown(f'<div class="{css}">{text}</div>', unsafe_allow_html=True)

    with st.form("agent-input", clear_on_submit=True):
        text = st.text_area("Message", placeholder="e.g. I spent 50 at the market")
        uploaded = st.file_uploader(
            "Receipt photo or voice note",
            type=app_settings.supported_image_list + app_settings.supported_audio_list,
        )
        submitted = st.form_submit_button("Send", type="primary")

    if not submitted or not (text or uploaded):
        return

    media = None
    if uploaded is not None:
        if uploaded.size > app_settings.max_upload_size_bytes:
            st.error(f"File too large. Maximum is {app_settings.max_upload_size_mb} MB.")
            return
        try:
            media = MediaPayload(data=uploaded.getvalue(), mime_type=uploaded.type or "")
        except ValueError as e:
            st.error(str(e))
            return

    label = text or ("🎤 Audio" if media and media.is_audio else "📷 Photo")
    st.session_state.agent_messages.append(("user", label))

    with st.spinner("Processing..."):
        reply = run_async(components.agent.process_input(text, media, mode))
    st.session_state.agent_messages.append(("agent", reply.text))
    st.rerun()


def render_database_page(components: AppComponents, mode: Mode):
    """Render the remote storage configuration."""
    st.title("🗄️ Database")
    db = components.db

    if db.is_remote_configured:
        st.success(f"✅ Connected to {db.remote_config.url}")
        if st.button("Disconnect"):
            db.disconnect()
            st.rerun()
    else:
        st.info("💾 Using local storage. Data stays on this machine.")

    st.markdown("### 1. Create the tables")
    st.markdown("Run this script in the Supabase SQL editor:")
    st.code(SCHEMA_SQL, language="sql")

    st.markdown("### 2. Connect")
    url = st.text_input("Project URL", placeholder="https://xyz.supabase.co")
    key = st.text_input("Anon API key", type="password")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("🔌 Test connection"):
            with st.spinner("Testing..."):
                result = check_connection(url, key)
            if result.success:
                st.success(result.message)
            else:
                st.error(result.message)
    with col2:
        if st.button("💾 Save and connect", type="primary"):
            if not url or not key:
                st.error("Fill in the URL and the API key.")
            else:
                db.reconfigure(url, key)
                run_async(db.init())
                st.rerun()

    st.markdown("---")
    st.markdown("### Services")
    status = validate_all_settings()
    services = [
        ("Gemini (AI)", "gemini"),
        ("Supabase credentials in environment", "supabase_credentials"),
    ]
    for name, service_key in services:
        if status.get(service_key, False):
            st.success(f"✅ {name}")
        else:
            error = status.get(f"{service_key}_error", "Not configured")
            st.warning(f"⚠️ {name} - {error}")

    if not db.is_remote_configured:
        st.markdown("---")
        st.markdown("### Danger zone")
        if st.button("🗑️ Erase local data"):
            if db.reset():
                st.session_state.pop("advice", None)
                st.rerun()


if __name__ == "__main__":
    main()
