"""MCP server for SplitSavvy: exposes group balances and settling up as tools."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .exceptions import SplitSavvyError
from .service import LedgerService

logger = logging.getLogger(__name__)

mcp_app = FastMCP("splitsavvy")

WORKFLOW_INSTRUCTIONS = """\
You are helping a group split shared expenses. Follow this workflow:

1. DISCOVER: Call list_groups to find the group the user means.

2. RECORD: For each new expense call add_expense. Leave shares empty for an
   equal split; otherwise pass every participant's share and make sure they
   add up to the total.

3. REVIEW: Call show_balances to see who is owed and who owes.

4. SETTLE: Call settlement_plan for the minimal list of payments and share
   the payment links. When the user confirms a payment happened, call
   record_settlement.

Positive balance = gets money back, negative balance = owes money.\
"""


@dataclass
class SessionState:
    """Holds the service between MCP tool calls within a single conversation."""

    service: LedgerService | None = None
    db: Database | None = None


_state = SessionState()


def _ensure_service() -> LedgerService:
    """Lazily initialize the LedgerService (loads .env config)."""
    if _state.service is None:
        settings = load_settings()
        _state.db = Database(settings.database_path)
        _state.service = LedgerService(settings, _state.db)
    return _state.service


def _format_amount(amount: Decimal) -> str:
    """Format an amount as accounting-style dollar string."""
    if amount < 0:
        return f"(${abs(amount):,.2f})"
    return f"${amount:,.2f}"


@mcp_app.tool()
def list_groups() -> str:
    """List all groups with their participants."""
    try:
        service = _ensure_service()
        groups = service.list_groups()

        if not groups:
            return "No groups found."

        lines = ["Groups:"]
        for group in groups:
            members = ", ".join(f"{u.name} ({u.id})" for u in group.participants)
            lines.append(f"  {group.name} (id: {group.id}) | {members or 'no members'}")

        return "\n".join(lines)
    except SplitSavvyError as e:
        return f"Error: {e}"


@mcp_app.tool()
def show_balances(group_id: str) -> str:
    """Show each participant's net balance in a group.

    Args:
        group_id: ID of the group (from list_groups).
    """
    try:
        service = _ensure_service()
        names = service.user_names()
        balances = service.get_net_balances(group_id)

        lines = ["Net balances:"]
        for entry in balances:
            name = names.get(entry.user_id, entry.user_id)
            lines.append(f"  {name}: {_format_amount(entry.balance)} ({entry.status})")

        return "\n".join(lines)
    except SplitSavvyError as e:
        return f"Error: {e}"


@mcp_app.tool()
def settlement_plan(group_id: str) -> str:
    """Show the minimal list of payments that settles a group.

    Args:
        group_id: ID of the group (from list_groups).
    """
    try:
        service = _ensure_service()
        names = service.user_names()
        options = service.get_settle_up_options(group_id)

        if not options:
            return "Everyone is settled up. No payments needed."

        lines = ["Payments to make:"]
        for option in options:
            transfer = option.transfer
            lines.append(
                f"  {names.get(transfer.from_user, transfer.from_user)} pays "
                f"{names.get(transfer.to_user, transfer.to_user)} "
                f"{_format_amount(transfer.amount)} | {option.payment_link}"
            )

        return "\n".join(lines)
    except SplitSavvyError as e:
        return f"Error: {e}"


@mcp_app.tool()
def add_expense(
    group_id: str,
    amount: str,
    description: str,
    paid_by: str,
    shares: dict[str, str] | None = None,
) -> str:
    """Record an expense for a group.

    Args:
        group_id: ID of the group.
        amount: Expense total, e.g. "42.50".
        description: What it was for.
        paid_by: User ID of the payer.
        shares: Optional map of user ID to owed amount for a custom split.
            Omit for an equal split across the whole group.
    """
    try:
        service = _ensure_service()
        expense = service.add_expense(group_id, amount, description, paid_by, shares)

        return (
            f"Added '{expense.description}' {_format_amount(expense.amount)} "
            f"(id: {expense.id}), split {len(expense.splits)} ways."
        )
    except SplitSavvyError as e:
        return f"Error: {e}"


@mcp_app.tool()
def record_settlement(group_id: str, from_user: str, to_user: str, amount: str) -> str:
    """Record that one participant paid another.

    Args:
        group_id: ID of the group.
        from_user: User ID of the payer.
        to_user: User ID of the recipient.
        amount: Amount paid, e.g. "25.00".
    """
    try:
        service = _ensure_service()
        settlement = service.record_settlement(group_id, from_user, to_user, amount)

        return (
            f"Recorded settlement {settlement.id}: "
            f"{_format_amount(settlement.amount)} (pending until marked complete)."
        )
    except SplitSavvyError as e:
        return f"Error: {e}"


@mcp_app.prompt()
def settle_workflow() -> str:
    """Orchestration instructions for splitting and settling group expenses."""
    return WORKFLOW_INSTRUCTIONS


def run_server():
    """Start the MCP server (stdio transport)."""
    mcp_app.run(transport="stdio")
