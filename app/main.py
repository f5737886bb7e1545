"""
Streamlit Dashboard for Notion Ledger

A single-page view over the user's Notion budget:
1. Account balances with each account's last transaction
2. A form to add a transaction
3. Recent activity

DESIGN PRINCIPLES:
1. Notion stays the source of truth; nothing is stored here
2. Errors are shown with the hint that tells the user what to fix
3. Nothing is written without an explicit "Add" action
"""

from datetime import date

import streamlit as st

from app.markup import account_card, format_amount
from app.runner import BackgroundLoop
from src.audit import AuditLogger, create_correlation_id
from src.auth import verify_credentials
from src.config import get_settings, validate_all_settings
from src.errors import TrackerError
from src.models import TransactionRequest
from src.orchestrator import LedgerComponents, create_app_components


# Page configuration
st.set_page_config(
    page_title="Notion Ledger",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .account-card {
        padding: 20px;
        background-color: #f8f9fa;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
    .income {
        color: #28a745;
    }
    .expense {
        color: #dc3545;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_background_loop() -> BackgroundLoop:
    """One loop thread for the process; every session submits work to it."""
    return BackgroundLoop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    return get_background_loop().run(coro)


@st.cache_resource
def get_components() -> LedgerComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def show_error(error: TrackerError) -> None:
    st.error(f"**{error.error}**: {error.details}")
    if error.hint:
        st.info(error.hint)


def render_login() -> None:
    """Shared-credential login gate."""
    st.title("💰 Notion Ledger")
    st.markdown("Please log in to continue.")

    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if not submitted:
        return

    if not username or not password:
        st.error("Username and password are required")
        return

    auth = get_settings().auth
    succeeded = verify_credentials(username, password, auth.username, auth.password_hash)
    AuditLogger().log_login(username=username, succeeded=succeeded)

    if succeeded:
        st.session_state.authenticated = True
        st.rerun()
    else:
        st.error("Invalid username or password")


def main():
    """Main application entry point."""
    if not st.session_state.get("authenticated"):
        render_login()
        return

    st.sidebar.title("💰 Notion Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➕ Add Transaction", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Log out"):
        st.session_state.clear()
        st.rerun()

    if page == "⚙️ Settings":
        render_settings_page()
        return

    try:
        components = get_components()
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        st.info("Check the NOTION_* variables in your .env file.")
        return

    if page == "📊 Dashboard":
        render_dashboard_page(components)
    elif page == "➕ Add Transaction":
        render_transaction_page(components)


def render_dashboard_page(components: LedgerComponents):
    """Render balances and recent activity."""
    st.title("📊 Dashboard")

    st.markdown("### Accounts")
    try:
        report = run_async(
            components.balances.balances(correlation_id=create_correlation_id())
        )
    except TrackerError as e:
        show_error(e)
        report = None

    if report is not None:
        if report.message:
            st.info(report.message)

        columns = st.columns(3)
        for index, account in enumerate(report.accounts):
            with columns[index % 3]:
                st.markdown(account_card(account), unsafe_allow_html=True)

    st.markdown("---")
    st.markdown("### Recent Activity")

    limit = st.slider(
        "Show",
        min_value=1,
        max_value=get_settings().app.max_recent_transactions_limit,
        value=get_settings().app.default_recent_transactions_limit,
    )
    try:
        transactions = run_async(components.recent.recent(limit))
    except TrackerError as e:
        show_error(e)
        return

    if not transactions:
        st.info("No transactions yet. Use 'Add Transaction' to add your first one.")
        return

    for transaction in transactions:
        col1, col2, col3 = st.columns([3, 2, 2])
        col1.markdown(f"**{transaction.name}**")
        col2.markdown(transaction.date or "No date")
        col3.markdown(format_amount(transaction.amount, transaction.type), unsafe_allow_html=True)


def render_transaction_page(components: LedgerComponents):
    """Render the add-transaction form."""
    st.title("➕ Add Transaction")

    try:
        accounts = run_async(components.catalog.accounts())
        categories = run_async(components.catalog.categories())
    except TrackerError as e:
        show_error(e)
        return

    account_names = {account.id: account.name for account in accounts}
    category_names = {"": "None"}
    category_names.update({category.id: category.name for category in categories})

    with st.form("transaction", clear_on_submit=False):
        name = st.text_input("Name", placeholder="e.g., Groceries at the market")

        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input("Amount", min_value=0.0, step=0.01, format="%.2f")
        with col2:
            kind = st.radio("Type", ["Expense", "Income"], horizontal=True)

        transaction_date = st.date_input("Date", value=date.today())

        account = st.selectbox(
            "Account",
            options=list(account_names),
            format_func=lambda x: account_names[x],
        )
        category = st.selectbox(
            "Category",
            options=list(category_names),
            format_func=lambda x: category_names[x],
            help="Required for expenses",
        )
        note = st.text_area("Note", placeholder="Optional")

        submitted = st.form_submit_button("✅ Add", type="primary")

    if not submitted:
        return

    request = TransactionRequest(
        name=name,
        amount=amount,
        type=kind,
        date=transaction_date.isoformat(),
        account=account,
        category=category or None,
        note=note,
    )

    with st.spinner("Saving to Notion..."):
        try:
            created = run_async(
                components.writer.create(request, correlation_id=create_correlation_id())
            )
        except TrackerError as e:
            show_error(e)
            return

    st.success(f"✅ {created.message}")
    st.caption(f"Page ID: {created.page_id}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Notion (Transactions)", "notion"),
        ("Accounts Database", "accounts_database"),
        ("Login", "auth"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if st.button("🔄 Reload database schemas"):
        try:
            get_components().schema_cache.invalidate()
            st.success("Schemas will be fetched again on next use.")
        except Exception as e:
            st.error(f"Failed to initialize: {e}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your Notion "
        "integration token and database IDs. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
