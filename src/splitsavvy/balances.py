"""Core balance logic: net balances per participant and the settle-up plan."""

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from .models import Expense, Transfer

logger = logging.getLogger(__name__)

# Below this, a balance counts as settled and a transfer isn't worth making
TOLERANCE = Decimal("0.01")
CENT = Decimal("0.01")

AmountLike = Decimal | int | float | str
BalanceInput = Mapping[str, AmountLike] | Iterable[tuple[str, AmountLike]]


def to_decimal(value: AmountLike) -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through ``str()`` so 0.1 stays 0.1 instead of picking up
    binary noise.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_amount(amount: Decimal) -> Decimal:
    """Round to cents using ROUND_HALF_UP."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def is_settled(balance: Decimal) -> bool:
    """Whether a balance is close enough to zero to ignore."""
    return abs(balance) <= TOLERANCE


def compute_net_balances(
    expenses: Iterable[Expense], participants: Iterable[str]
) -> dict[str, Decimal]:
    """
    Fold expenses into one net balance per participant.

    The payer is credited the full amount and every split debits its
    participant. A payer who also owes a share nets to a smaller credit.

    Args:
        expenses: Expenses of one group
        participants: The group's roster (IDs)

    Returns:
        Mapping of user ID to balance, positive = is owed money. Every
        roster member is present (at zero if untouched); IDs seen only in
        expense data are added on first reference.
    """
    balances: dict[str, Decimal] = {user_id: Decimal("0") for user_id in participants}

    for expense in expenses:
        balances[expense.paid_by] = balances.get(
            expense.paid_by, Decimal("0")
        ) + to_decimal(expense.amount)

        for split in expense.splits:
            balances[split.user_id] = balances.get(
                split.user_id, Decimal("0")
            ) - to_decimal(split.amount)

    return balances


def simplify_balances(balances: BalanceInput) -> list[Transfer]:
    """
    Compute a minimal list of transfers that settles every balance.

    Greedy matching over a list sorted once by balance: the largest debtor
    (front) pays the largest creditor (back) the smaller of the two
    magnitudes, so every step zeroes at least one of them. That bounds the
    plan at N-1 transfers for N non-zero balances.

    Arithmetic stays exact; only emitted amounts are rounded to cents.

    Args:
        balances: Mapping of user ID to balance, or (user ID, balance) pairs

    Returns:
        Transfers in the order they were matched (possibly empty)
    """
    items = balances.items() if isinstance(balances, Mapping) else balances
    entries = [(user_id, to_decimal(amount)) for user_id, amount in items]

    # [user_id, balance] pairs, mutated in place while matching
    working = sorted(
        ([user_id, amount] for user_id, amount in entries if not is_settled(amount)),
        key=lambda entry: entry[1],
    )

    transfers: list[Transfer] = []
    first, last = 0, len(working) - 1

    while first < last:
        debtor, creditor = working[first], working[last]

        # Balances that don't sum to zero can leave only one side
        if debtor[1] >= 0 or creditor[1] <= 0:
            break

        amount = min(-debtor[1], creditor[1])

        if amount > TOLERANCE:
            transfers.append(
                Transfer(
                    from_user=debtor[0],
                    to_user=creditor[0],
                    amount=round_amount(amount),
                )
            )

        debtor[1] += amount
        creditor[1] -= amount

        # Equal magnitudes settle both sides at once
        if is_settled(debtor[1]):
            first += 1
        if is_settled(creditor[1]):
            last -= 1

    leftover = working[first : last + 1]
    if leftover:
        logger.warning(
            "Balances do not sum to zero; left unmatched: "
            + ", ".join(f"{user_id}={amount}" for user_id, amount in leftover)
        )

    logger.debug(
        f"Simplified {len(working)} open balances into {len(transfers)} transfers"
    )

    return transfers


def calculate_balances(
    expenses: Iterable[Expense], participants: Iterable[str]
) -> list[Transfer]:
    """Compute the settlement plan for a group straight from its expenses."""
    return simplify_balances(compute_net_balances(expenses, participants))


def apply_transfers(
    balances: Mapping[str, AmountLike], transfers: Iterable[Transfer]
) -> dict[str, Decimal]:
    """
    Return the balances left over after executing the given transfers.

    The input mapping is not modified.
    """
    result = {user_id: to_decimal(amount) for user_id, amount in balances.items()}

    for transfer in transfers:
        result[transfer.from_user] = (
            result.get(transfer.from_user, Decimal("0")) + transfer.amount
        )
        result[transfer.to_user] = (
            result.get(transfer.to_user, Decimal("0")) - transfer.amount
        )

    return result
