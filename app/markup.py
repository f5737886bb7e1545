"""HTML snippets for the dashboard. Text from Notion is always escaped."""

import html

from src.models import AccountBalance, TransactionKind


def format_amount(amount: float, kind: TransactionKind) -> str:
    sign = "+" if kind == TransactionKind.INCOME else "-"
    return f'<span class="{kind.value}">{sign}{amount:,.2f}</span>'


def account_card(account: AccountBalance) -> str:
    """Balance card for one account, with its last transaction if any."""
    last = ""
    if account.last_transaction:
        last = "Last: " + format_amount(
            account.last_transaction.amount,
            account.last_transaction.type,
        )
    return f"""
    <div class="account-card">
        <h4>{html.escape(account.name)}</h4>
        <div class="big-number">{account.balance:,.2f}</div>
        <p>{last}</p>
    </div>
    """
