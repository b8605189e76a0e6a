"""Expense entry: building and validating split lines."""

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from .balances import CENT, TOLERANCE, AmountLike, to_decimal
from .exceptions import InvalidAmountError, SplitMismatchError
from .models import ExpenseSplit

logger = logging.getLogger(__name__)


def parse_amount(value: AmountLike) -> Decimal:
    """
    Parse user input into a positive Decimal amount.

    Raises:
        InvalidAmountError: If the value isn't a number or isn't positive
    """
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidAmountError(f"Please enter a valid amount (got {value!r})") from e

    validate_expense_amount(amount)
    return amount


def validate_expense_amount(amount: Decimal):
    """Reject amounts that are not finite and positive."""
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(f"Please enter a valid amount (got {amount})")


def equal_split(
    amount: Decimal, payer_id: str, participant_ids: Iterable[str]
) -> list[ExpenseSplit]:
    """
    Split an expense equally between the payer and everyone else on the roster.

    The total is dealt out in whole cents and leftover cents go one each to
    the payer first, then the roster in order, so no two shares differ by
    more than a cent. Any sub-cent remainder lands on the payer so the
    splits add up to ``amount`` exactly. The payer is listed last.

    Args:
        amount: Expense total
        payer_id: Who paid
        participant_ids: Group roster (the payer may or may not be on it)

    Returns:
        One split per participant
    """
    others = [user_id for user_id in participant_ids if user_id != payer_id]
    recipients = [payer_id, *others]

    cents = int((amount / CENT).to_integral_value(rounding=ROUND_DOWN))
    base, extra = divmod(cents, len(recipients))
    remainder = amount - cents * CENT

    shares = {
        user_id: (base + (1 if position < extra else 0)) * CENT
        for position, user_id in enumerate(recipients)
    }
    shares[payer_id] += remainder

    if extra or remainder:
        logger.debug(
            f"Spread {extra} leftover cents (+{remainder}) "
            f"across {len(recipients)} shares"
        )

    splits = [
        ExpenseSplit(user_id=user_id, amount=shares[user_id]) for user_id in others
    ]
    splits.append(ExpenseSplit(user_id=payer_id, amount=shares[payer_id]))
    return splits


def custom_split(
    amount: Decimal, shares: Mapping[str, AmountLike]
) -> list[ExpenseSplit]:
    """
    Build splits from explicit per-participant amounts.

    Raises:
        InvalidAmountError: If a share isn't a number
        SplitMismatchError: If the shares don't sum to ``amount`` within
            the balance tolerance
    """
    splits = []
    for user_id, share in shares.items():
        try:
            value = to_decimal(share)
        except (InvalidOperation, ValueError, TypeError) as e:
            raise InvalidAmountError(
                f"Please enter valid amounts for all participants (got {share!r})"
            ) from e
        if not value.is_finite():
            raise InvalidAmountError(
                f"Please enter valid amounts for all participants (got {share!r})"
            )
        splits.append(ExpenseSplit(user_id=user_id, amount=value))

    split_total = sum((split.amount for split in splits), Decimal("0"))
    if abs(split_total - amount) > TOLERANCE:
        raise SplitMismatchError(split_total=split_total, amount=amount)

    return splits
