"""Custom exceptions for SplitSavvy."""

from decimal import Decimal


class SplitSavvyError(Exception):
    """Base exception for all SplitSavvy errors."""

    pass


class ConfigurationError(SplitSavvyError):
    """Raised when configuration is invalid or missing."""

    pass


class NotFoundError(SplitSavvyError):
    """Base class for lookups that find nothing."""

    entity = "Record"

    def __init__(self, entity_id: str, message: str | None = None):
        self.entity_id = entity_id
        super().__init__(message or f"{self.entity} '{entity_id}' not found")


class UserNotFoundError(NotFoundError):
    """Raised when a user ID does not exist."""

    entity = "User"


class GroupNotFoundError(NotFoundError):
    """Raised when a group ID does not exist."""

    entity = "Group"


class ExpenseNotFoundError(NotFoundError):
    """Raised when an expense ID does not exist."""

    entity = "Expense"


class SettlementNotFoundError(NotFoundError):
    """Raised when a settlement ID does not exist."""

    entity = "Settlement"


class ParticipantNotInGroupError(SplitSavvyError):
    """Raised when an expense or settlement references someone outside the roster."""

    def __init__(self, user_id: str, group_id: str):
        self.user_id = user_id
        self.group_id = group_id
        super().__init__(f"User '{user_id}' is not a participant of group '{group_id}'")


class InvalidSettlementError(SplitSavvyError):
    """Raised when a settlement would have someone paying themselves."""


class ExpenseValidationError(SplitSavvyError):
    """Base class for rejected expense entries."""

    pass


class InvalidAmountError(ExpenseValidationError):
    """Raised when an expense amount is not a positive number."""

    pass


class SplitMismatchError(ExpenseValidationError):
    """Raised when custom split amounts don't add up to the expense amount."""

    def __init__(self, split_total: Decimal, amount: Decimal):
        self.split_total = split_total
        self.amount = amount
        super().__init__(
            f"The sum of splits ({split_total:.2f}) doesn't equal "
            f"the total amount ({amount:.2f})"
        )
