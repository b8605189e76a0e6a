"""Service layer that ties the ledger store to the balance calculations.

Balances are never stored: every query recomputes them from the group's
full expense history.
"""

import logging
import uuid
from collections.abc import Mapping
from decimal import Decimal

from .balances import (
    AmountLike,
    calculate_balances,
    compute_net_balances,
)
from .config import Settings
from .db import Database
from .exceptions import (
    ExpenseNotFoundError,
    ExpenseValidationError,
    GroupNotFoundError,
    InvalidSettlementError,
    ParticipantNotInGroupError,
    SettlementNotFoundError,
    UserNotFoundError,
)
from .models import (
    Expense,
    Group,
    ParticipantBalance,
    Settlement,
    SettleUpOption,
    Transfer,
    User,
)
from .payments import build_payment_link
from .splits import custom_split, equal_split, parse_amount

logger = logging.getLogger(__name__)


def generate_id() -> str:
    """Generate a short random ID for a new record."""
    return uuid.uuid4().hex[:8]


class LedgerService:
    """Service for managing groups and expenses and settling them up."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Users
    # ========================================================================

    def add_user(self, name: str) -> User:
        """Create a new user."""
        name = name.strip()
        if not name:
            raise ValueError("Please enter a name")

        user = User(id=generate_id(), name=name)
        self.db.save_user(user)

        logger.info(f"Added user {user.name} ({user.id})")
        return user

    def get_user(self, user_id: str) -> User:
        """Get a user, raising if it doesn't exist."""
        user = self.db.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def list_users(self) -> list[User]:
        return self.db.list_users()

    # ========================================================================
    # Groups
    # ========================================================================

    def create_group(self, name: str) -> Group:
        """Create an empty group."""
        name = name.strip()
        if not name:
            raise ValueError("Please enter a group name")

        group = Group(id=generate_id(), name=name)
        self.db.save_group(group)

        logger.info(f"Created group {group.name} ({group.id})")
        return group

    def get_group(self, group_id: str) -> Group:
        """Get a group with its roster, raising if it doesn't exist."""
        group = self.db.get_group(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    def list_groups(self) -> list[Group]:
        return self.db.list_groups()

    def add_participant(self, group_id: str, user_id: str) -> Group:
        """
        Add a user to a group's roster.

        Adding someone who is already a member is a no-op.

        Returns:
            The updated group
        """
        self.get_group(group_id)
        user = self.get_user(user_id)

        if self.db.add_participant(group_id, user_id):
            logger.info(f"Added {user.name} to group {group_id}")
        else:
            logger.debug(f"{user.name} is already in group {group_id}")

        return self.get_group(group_id)

    def remove_participant(self, group_id: str, user_id: str) -> Group:
        """
        Remove a user from a group's roster.

        Their existing expenses stay, so they keep showing up in balances.

        Returns:
            The updated group
        """
        self.get_group(group_id)

        if self.db.remove_participant(group_id, user_id):
            logger.info(f"Removed {user_id} from group {group_id}")

        return self.get_group(group_id)

    # ========================================================================
    # Expenses
    # ========================================================================

    def add_expense(
        self,
        group_id: str,
        amount: AmountLike,
        description: str,
        paid_by: str,
        shares: Mapping[str, AmountLike] | None = None,
    ) -> Expense:
        """
        Record an expense for a group.

        Args:
            group_id: The group the expense belongs to
            amount: Expense total, must be positive
            description: What it was for
            paid_by: User ID of the payer, must be in the group
            shares: Per-participant amounts for a custom split. When omitted
                the expense is split equally across the whole roster.

        Returns:
            The saved expense

        Raises:
            ExpenseValidationError: On a bad amount, missing description or
                custom shares that don't add up
            ParticipantNotInGroupError: If the payer or a share holder isn't
                in the group
        """
        group = self.get_group(group_id)
        total = parse_amount(amount)

        description = description.strip()
        if not description:
            raise ExpenseValidationError("Please enter a description")

        if not group.has_participant(paid_by):
            raise ParticipantNotInGroupError(paid_by, group_id)

        if shares is None:
            splits = equal_split(total, paid_by, group.participant_ids)
        else:
            for user_id in shares:
                if not group.has_participant(user_id):
                    raise ParticipantNotInGroupError(user_id, group_id)
            splits = custom_split(total, shares)

        expense = Expense(
            id=generate_id(),
            group_id=group_id,
            amount=total,
            description=description,
            paid_by=paid_by,
            splits=splits,
        )
        self.db.save_expense(expense)

        logger.info(
            f"Added expense '{description}' ({total}) to group {group_id}, "
            f"split {len(splits)} ways"
        )
        return expense

    def delete_expense(self, expense_id: str):
        """Delete an expense."""
        if not self.db.delete_expense(expense_id):
            raise ExpenseNotFoundError(expense_id)
        logger.info(f"Deleted expense {expense_id}")

    def list_expenses(self, group_id: str) -> list[Expense]:
        self.get_group(group_id)
        return self.db.list_expenses(group_id)

    # ========================================================================
    # Balances
    # ========================================================================

    def get_net_balances(self, group_id: str) -> list[ParticipantBalance]:
        """
        Compute every participant's net balance in a group.

        Roster members come first in join order, then anyone who only
        appears in expense data (e.g. someone removed from the group).
        """
        group = self.get_group(group_id)
        expenses = self.db.list_expenses(group_id)

        balances = compute_net_balances(expenses, group.participant_ids)
        return [
            ParticipantBalance(user_id=user_id, balance=balance)
            for user_id, balance in balances.items()
        ]

    def get_settlement_plan(self, group_id: str) -> list[Transfer]:
        """Compute the minimal set of transfers that settles a group."""
        group = self.get_group(group_id)
        expenses = self.db.list_expenses(group_id)

        transfers = calculate_balances(expenses, group.participant_ids)

        logger.info(
            f"Settlement plan for group {group_id}: {len(transfers)} transfers "
            f"from {len(expenses)} expenses"
        )
        return transfers

    def get_settle_up_options(self, group_id: str) -> list[SettleUpOption]:
        """Settlement plan with a payment link for each transfer."""
        return [
            SettleUpOption(
                transfer=transfer,
                payment_link=build_payment_link(
                    self.settings.payment_link_base_url, transfer
                ),
            )
            for transfer in self.get_settlement_plan(group_id)
        ]

    # ========================================================================
    # Settlements
    # ========================================================================

    def record_settlement(
        self, group_id: str, from_user: str, to_user: str, amount: AmountLike
    ) -> Settlement:
        """
        Record a payment between two participants as pending.

        Recorded settlements are a history only; they don't change the
        balances computed from expenses.

        Raises:
            InvalidSettlementError: If someone would be paying themselves
            ParticipantNotInGroupError: If either side isn't in the group
        """
        group = self.get_group(group_id)
        for user_id in (from_user, to_user):
            self.get_user(user_id)
            if not group.has_participant(user_id):
                raise ParticipantNotInGroupError(user_id, group_id)

        if from_user == to_user:
            raise InvalidSettlementError("A settlement needs two different people")

        settlement = Settlement(
            id=generate_id(),
            group_id=group_id,
            from_user=from_user,
            to_user=to_user,
            amount=parse_amount(amount),
        )
        self.db.save_settlement(settlement)

        logger.info(
            f"Recorded settlement {settlement.id}: {from_user} -> {to_user} "
            f"({settlement.amount})"
        )
        return settlement

    def mark_settlement_complete(self, settlement_id: str) -> Settlement:
        """Mark a recorded settlement as paid."""
        if not self.db.mark_settlement_settled(settlement_id):
            raise SettlementNotFoundError(settlement_id)

        settlement = self.db.get_settlement(settlement_id)
        assert settlement is not None

        logger.info(f"Marked settlement {settlement_id} as complete")
        return settlement

    def list_settlements(self, group_id: str) -> list[Settlement]:
        """Recorded settlements of a group, newest first."""
        self.get_group(group_id)
        return self.db.list_settlements(group_id)

    def user_names(self) -> dict[str, str]:
        """Map of user ID to display name."""
        return {user.id: user.name for user in self.db.list_users()}


def total_outstanding(transfers: list[Transfer]) -> Decimal:
    """Sum of all transfer amounts in a settlement plan."""
    return sum((transfer.amount for transfer in transfers), Decimal("0"))
