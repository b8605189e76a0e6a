"""SplitSavvy - Split group expenses and settle up with as few payments as possible."""

__version__ = "0.1.0"

from .balances import (
    TOLERANCE,
    apply_transfers,
    calculate_balances,
    compute_net_balances,
    simplify_balances,
)
from .config import Settings, load_settings
from .db import Database
from .models import (
    Expense,
    ExpenseSplit,
    Group,
    ParticipantBalance,
    Settlement,
    Transfer,
    User,
)
from .service import LedgerService

__all__ = [
    "TOLERANCE",
    "apply_transfers",
    "calculate_balances",
    "compute_net_balances",
    "simplify_balances",
    "Settings",
    "load_settings",
    "Database",
    "Expense",
    "ExpenseSplit",
    "Group",
    "ParticipantBalance",
    "Settlement",
    "Transfer",
    "User",
    "LedgerService",
]
