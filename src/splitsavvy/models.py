"""Pydantic domain models for SplitSavvy."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

# ============================================================================
# Group Models
# ============================================================================


class User(BaseModel):
    """A person who can take part in groups."""

    id: str
    name: str


class Group(BaseModel):
    """A group of people sharing expenses."""

    id: str
    name: str
    participants: list[User] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def participant_ids(self) -> list[str]:
        """Roster as plain IDs, in the order members joined."""
        return [user.id for user in self.participants]

    def has_participant(self, user_id: str) -> bool:
        """Check if a user is on this group's roster."""
        return user_id in self.participant_ids


# ============================================================================
# Expense Models
# ============================================================================


class ExpenseSplit(BaseModel):
    """What one participant owes towards an expense."""

    user_id: str
    amount: Decimal


class Expense(BaseModel):
    """A shared expense paid by one participant.

    The split amounts are expected to add up to ``amount``, but nothing here
    enforces it. Entry-time validation lives in ``splits``.
    """

    id: str
    group_id: str
    amount: Decimal
    description: str
    paid_by: str  # User ID
    date: datetime = Field(default_factory=datetime.now)
    splits: list[ExpenseSplit]


class Settlement(BaseModel):
    """A recorded payment between two participants."""

    id: str
    group_id: str
    from_user: str
    to_user: str
    amount: Decimal
    date: datetime = Field(default_factory=datetime.now)
    settled: bool = False  # True once marked complete


# ============================================================================
# Balance Models
# ============================================================================


class Transfer(BaseModel):
    """A proposed payment in a settlement plan."""

    from_user: str  # debtor
    to_user: str  # creditor
    amount: Decimal  # always positive, rounded to cents


class ParticipantBalance(BaseModel):
    """A participant's net balance within a group.

    Positive means they are owed money, negative means they owe money.
    """

    user_id: str
    balance: Decimal

    @property
    def status(self) -> Literal["settled", "gets back", "owes"]:
        if self.balance > 0:
            return "gets back"
        if self.balance < 0:
            return "owes"
        return "settled"


class SettleUpOption(BaseModel):
    """A settlement-plan transfer paired with its payment link."""

    transfer: Transfer
    payment_link: str
