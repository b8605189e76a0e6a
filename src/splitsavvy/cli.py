"""CLI for SplitSavvy using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .exceptions import InvalidAmountError, SplitSavvyError
from .mcp_server import run_server
from .service import LedgerService, total_outstanding
from .ui import confirm, select_user_interactive

app = typer.Typer(
    name="splitsavvy",
    help="Split group expenses and work out who pays whom",
)
user_app = typer.Typer(help="Manage people")
group_app = typer.Typer(help="Manage groups and their members")
expense_app = typer.Typer(help="Record and review expenses")

app.add_typer(user_app, name="user")
app.add_typer(group_app, name="group")
app.add_typer(expense_app, name="expense")

console = Console()

_options = {"verbose": False}


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Split group expenses and work out who pays whom."""
    _options["verbose"] = verbose
    setup_logging(verbose)


@contextmanager
def open_service() -> Iterator[LedgerService]:
    """Load settings, open the database and hand out a service.

    Domain errors are printed and turned into exit status 1.
    """
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except (SplitSavvyError, ValueError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if _options["verbose"]:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def format_money(amount: Decimal, symbol: str = "$", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"({symbol}[red]{abs_amount:,.2f}[/red])"
        return f"({symbol}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{symbol}{abs_amount:,.2f}[/green] "
    return f" {symbol}{abs_amount:,.2f} "


def parse_shares(raw_shares: list[str]) -> dict[str, str]:
    """Parse ``USER_ID=AMOUNT`` pairs from the command line."""
    shares = {}
    for raw in raw_shares:
        user_id, sep, amount = raw.partition("=")
        if not sep or not user_id.strip() or not amount.strip():
            raise InvalidAmountError(
                f"Shares must look like USER_ID=AMOUNT (got {raw!r})"
            )
        shares[user_id.strip()] = amount.strip()
    return shares


# ============================================================================
# Users
# ============================================================================


@user_app.command("add")
def user_add(name: str = typer.Argument(..., help="Display name")):
    """Add a person."""
    with open_service() as service:
        user = service.add_user(name)
        console.print(f"[green]✓ Added {user.name}[/green] [dim](id: {user.id})[/dim]")


@user_app.command("list")
def user_list():
    """List everyone."""
    with open_service() as service:
        users = service.list_users()
        if not users:
            console.print("[yellow]No users yet.[/yellow]")
            return

        table = Table(title="Users", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=10)
        table.add_column("Name", style="cyan")
        for user in users:
            table.add_row(user.id, user.name)
        console.print(table)


# ============================================================================
# Groups
# ============================================================================


@group_app.command("create")
def group_create(name: str = typer.Argument(..., help="Group name")):
    """Create a group."""
    with open_service() as service:
        group = service.create_group(name)
        console.print(
            f"[green]✓ Created group {group.name}[/green] [dim](id: {group.id})[/dim]"
        )


@group_app.command("list")
def group_list():
    """List all groups."""
    with open_service() as service:
        groups = service.list_groups()
        if not groups:
            console.print("[yellow]No groups yet.[/yellow]")
            return

        table = Table(title="Groups", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=10)
        table.add_column("Name", style="cyan")
        table.add_column("Members", justify="right")
        table.add_column("Created", style="dim")
        for group in groups:
            table.add_row(
                group.id,
                group.name,
                str(len(group.participants)),
                group.created_at.strftime("%Y-%m-%d"),
            )
        console.print(table)


@group_app.command("show")
def group_show(group_id: str = typer.Argument(..., help="Group ID")):
    """Show a group's members."""
    with open_service() as service:
        group = service.get_group(group_id)
        console.print(f"\n[bold]{group.name}[/bold] [dim](id: {group.id})[/dim]")
        if not group.participants:
            console.print("[yellow]No participants yet.[/yellow]")
        for user in group.participants:
            console.print(f"  • {user.name} [dim]({user.id})[/dim]")


@group_app.command("add-member")
def group_add_member(
    group_id: str = typer.Argument(..., help="Group ID"),
    user_id: str = typer.Argument(..., help="User ID"),
):
    """Add a person to a group."""
    with open_service() as service:
        group = service.add_participant(group_id, user_id)
        console.print(
            f"[green]✓ {group.name} now has {len(group.participants)} members[/green]"
        )


@group_app.command("remove-member")
def group_remove_member(
    group_id: str = typer.Argument(..., help="Group ID"),
    user_id: str = typer.Argument(..., help="User ID"),
):
    """Remove a person from a group."""
    with open_service() as service:
        group = service.remove_participant(group_id, user_id)
        console.print(
            f"[green]✓ {group.name} now has {len(group.participants)} members[/green]"
        )


# ============================================================================
# Expenses
# ============================================================================


@expense_app.command("add")
def expense_add(
    group_id: str = typer.Argument(..., help="Group ID"),
    amount: str = typer.Argument(..., help="Expense total"),
    description: str = typer.Argument(..., help="What it was for"),
    paid_by: str | None = typer.Option(
        None, "--paid-by", "-p", help="User ID of the payer (prompted if omitted)"
    ),
    share: list[str] | None = typer.Option(
        None,
        "--share",
        "-s",
        help="Custom split as USER_ID=AMOUNT, repeatable. Default: equal split",
    ),
):
    """
    Record an expense.

    Without --share the amount is split equally across the whole group.
    With --share the amounts must add up to the expense total.
    """
    with open_service() as service:
        if paid_by is None:
            group = service.get_group(group_id)
            paid_by = select_user_interactive(group.participants, title="Paid by")
            if paid_by is None:
                console.print("[yellow]Cancelled.[/yellow]")
                return

        shares = parse_shares(share) if share else None
        expense = service.add_expense(group_id, amount, description, paid_by, shares)

        names = service.user_names()
        symbol = service.settings.currency_symbol
        console.print(
            f"[green]✓ Added {expense.description}[/green] "
            f"{format_money(expense.amount, symbol)} [dim](id: {expense.id})[/dim]"
        )
        for split in expense.splits:
            console.print(
                f"  {names.get(split.user_id, 'Unknown')}: "
                f"{format_money(split.amount, symbol, use_color=False)}"
            )


@expense_app.command("list")
def expense_list(group_id: str = typer.Argument(..., help="Group ID")):
    """List a group's expenses."""
    with open_service() as service:
        expenses = service.list_expenses(group_id)
        if not expenses:
            console.print("[yellow]No expenses yet.[/yellow]")
            return

        names = service.user_names()
        symbol = service.settings.currency_symbol

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=10)
        table.add_column("Date", style="dim")
        table.add_column("Description", style="cyan", width=30)
        table.add_column("Amount", justify="right", width=12)
        table.add_column("Paid by", style="yellow")
        table.add_column("Split between", no_wrap=False)

        for expense in expenses:
            split_display = ", ".join(
                f"{names.get(split.user_id, 'Unknown')}: {symbol}{split.amount:.2f}"
                for split in expense.splits
            )
            desc = expense.description
            table.add_row(
                expense.id,
                expense.date.strftime("%Y-%m-%d"),
                desc[:30] + "..." if len(desc) > 30 else desc,
                format_money(expense.amount, symbol),
                names.get(expense.paid_by, "Unknown"),
                split_display,
            )
        console.print(table)


@expense_app.command("delete")
def expense_delete(expense_id: str = typer.Argument(..., help="Expense ID")):
    """Delete an expense."""
    with open_service() as service:
        service.delete_expense(expense_id)
        console.print(f"[green]✓ Deleted expense {expense_id}[/green]")


# ============================================================================
# Balances and settling up
# ============================================================================


@app.command()
def balances(group_id: str = typer.Argument(..., help="Group ID")):
    """Show each participant's net balance and the simplified transfers."""
    with open_service() as service:
        group = service.get_group(group_id)
        net_balances = service.get_net_balances(group_id)
        transfers = service.get_settlement_plan(group_id)
        names = service.user_names()
        symbol = service.settings.currency_symbol

        console.print(f"\n[bold]Balances: {group.name}[/bold]\n")

        if not net_balances:
            console.print("[yellow]No participants yet.[/yellow]")
            return

        for entry in net_balances:
            name = names.get(entry.user_id, "Unknown")
            if entry.status == "gets back":
                console.print(
                    f"  [green]{name}: gets back {symbol}{entry.balance:,.2f}[/green]"
                )
            elif entry.status == "owes":
                console.print(
                    f"  [red]{name}: owes {symbol}{-entry.balance:,.2f}[/red]"
                )
            else:
                console.print(f"  [dim]{name}: settled[/dim]")

        console.print("\n[bold]Simplified Transactions:[/bold]")
        if not transfers:
            console.print("  [green]✓ Everyone is settled up[/green]")
            return

        for transfer in transfers:
            console.print(
                f"  [red]{names.get(transfer.from_user, 'Unknown')}[/red] pays "
                f"[green]{names.get(transfer.to_user, 'Unknown')}[/green] "
                f"{format_money(transfer.amount, symbol, use_color=False)}"
            )


@app.command("settle-up")
def settle_up(group_id: str = typer.Argument(..., help="Group ID")):
    """Show the payments to make, each with a payment link."""
    with open_service() as service:
        options = service.get_settle_up_options(group_id)
        names = service.user_names()
        symbol = service.settings.currency_symbol

        if not options:
            if service.list_expenses(group_id):
                console.print("[green]Everyone is settled up! No payments needed.[/green]")
            else:
                console.print("[yellow]No expenses to calculate payments from.[/yellow]")
            return

        table = Table(
            title="Payments to Make", show_header=True, header_style="bold magenta"
        )
        table.add_column("From", style="red")
        table.add_column("To", style="green")
        table.add_column("Amount", justify="right", width=12)
        table.add_column("Payment link", style="cyan", no_wrap=True)

        for option in options:
            transfer = option.transfer
            table.add_row(
                names.get(transfer.from_user, "Unknown"),
                names.get(transfer.to_user, "Unknown"),
                format_money(transfer.amount, symbol),
                option.payment_link,
            )
        console.print(table)

        total = total_outstanding([option.transfer for option in options])
        console.print(f"\n  Transfers: {len(options)}")
        console.print(f"  Total to move: {format_money(total, symbol)}")


@app.command()
def settle(
    group_id: str = typer.Argument(..., help="Group ID"),
    from_user: str = typer.Argument(..., help="User ID of the payer"),
    to_user: str = typer.Argument(..., help="User ID of the recipient"),
    amount: str = typer.Argument(..., help="Amount paid"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Record a payment between two participants."""
    with open_service() as service:
        names = service.user_names()
        if not yes and not confirm(
            f"Record {names.get(from_user, from_user)} paying "
            f"{names.get(to_user, to_user)} {amount}?"
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        settlement = service.record_settlement(group_id, from_user, to_user, amount)
        console.print(
            f"[green]✓ Recorded settlement[/green] [dim](id: {settlement.id})[/dim]"
        )


@app.command()
def settlements(group_id: str = typer.Argument(..., help="Group ID")):
    """Show the payment history of a group."""
    with open_service() as service:
        history = service.list_settlements(group_id)
        if not history:
            console.print("[yellow]No payment history yet.[/yellow]")
            return

        names = service.user_names()
        symbol = service.settings.currency_symbol

        table = Table(
            title="Payment History", show_header=True, header_style="bold magenta"
        )
        table.add_column("ID", style="dim", width=10)
        table.add_column("Date", style="dim")
        table.add_column("From", style="red")
        table.add_column("To", style="green")
        table.add_column("Amount", justify="right", width=12)
        table.add_column("Status", justify="center")

        for settlement in history:
            table.add_row(
                settlement.id,
                settlement.date.strftime("%Y-%m-%d"),
                names.get(settlement.from_user, "Unknown"),
                names.get(settlement.to_user, "Unknown"),
                format_money(settlement.amount, symbol),
                (
                    "[green]Completed[/green]"
                    if settlement.settled
                    else "[yellow]Pending[/yellow]"
                ),
            )
        console.print(table)


@app.command()
def complete(settlement_id: str = typer.Argument(..., help="Settlement ID")):
    """Mark a recorded settlement as complete."""
    with open_service() as service:
        service.mark_settlement_complete(settlement_id)
        console.print(f"[green]✓ Settlement {settlement_id} marked as complete[/green]")


@app.command()
def mcp():
    """Start the MCP server for assistant integration."""
    run_server()


if __name__ == "__main__":
    app()
