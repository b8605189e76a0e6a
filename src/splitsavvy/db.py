"""SQLite database operations for SplitSavvy."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .models import Expense, ExpenseSplit, Group, Settlement, User


class Database:
    """SQLite database manager.

    Amounts are stored as TEXT so Decimal values round-trip exactly.
    """

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_groups (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # Roster order is join order
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS group_participants (
                group_id TEXT NOT NULL REFERENCES expense_groups(id),
                user_id TEXT NOT NULL REFERENCES users(id),
                position INTEGER NOT NULL,
                PRIMARY KEY (group_id, user_id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                group_id TEXT NOT NULL REFERENCES expense_groups(id),
                amount TEXT NOT NULL,
                description TEXT NOT NULL,
                paid_by TEXT NOT NULL,
                date TIMESTAMP NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_splits (
                expense_id TEXT NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
                user_id TEXT NOT NULL,
                amount TEXT NOT NULL,
                position INTEGER NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS settlements (
                id TEXT PRIMARY KEY,
                group_id TEXT NOT NULL REFERENCES expense_groups(id),
                from_user TEXT NOT NULL,
                to_user TEXT NOT NULL,
                amount TEXT NOT NULL,
                date TIMESTAMP NOT NULL,
                settled INTEGER NOT NULL DEFAULT 0
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # User operations
    # ========================================================================

    def save_user(self, user: User):
        """Save a user."""
        self.conn.execute(
            "INSERT INTO users (id, name) VALUES (?, ?)", (user.id, user.name)
        )
        self.conn.commit()

    def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, name FROM users WHERE id = ?", (user_id,))
        row = cursor.fetchone()
        return User(id=row["id"], name=row["name"]) if row else None

    def list_users(self) -> list[User]:
        """Get all users."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, name FROM users ORDER BY rowid")
        return [User(id=row["id"], name=row["name"]) for row in cursor.fetchall()]

    # ========================================================================
    # Group operations
    # ========================================================================

    def save_group(self, group: Group):
        """Save a new group along with its current roster."""
        self.conn.execute(
            "INSERT INTO expense_groups (id, name, created_at) VALUES (?, ?, ?)",
            (group.id, group.name, group.created_at.isoformat()),
        )
        for user in group.participants:
            self._insert_participant(group.id, user.id)
        self.conn.commit()

    def get_group(self, group_id: str) -> Group | None:
        """Get a group by ID, roster included."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, name, created_at FROM expense_groups WHERE id = ?",
            (group_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None

        return Group(
            id=row["id"],
            name=row["name"],
            participants=self.get_participants(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def list_groups(self) -> list[Group]:
        """Get all groups, oldest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, name, created_at FROM expense_groups ORDER BY rowid"
        )
        return [
            Group(
                id=row["id"],
                name=row["name"],
                participants=self.get_participants(row["id"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in cursor.fetchall()
        ]

    def get_participants(self, group_id: str) -> list[User]:
        """Get a group's roster in join order."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT u.id, u.name
            FROM group_participants gp
            JOIN users u ON u.id = gp.user_id
            WHERE gp.group_id = ?
            ORDER BY gp.position
            """,
            (group_id,),
        )
        return [User(id=row["id"], name=row["name"]) for row in cursor.fetchall()]

    def add_participant(self, group_id: str, user_id: str) -> bool:
        """Add a user to a group. Returns False if they were already a member."""
        added = self._insert_participant(group_id, user_id)
        self.conn.commit()
        return added

    def _insert_participant(self, group_id: str, user_id: str) -> bool:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT OR IGNORE INTO group_participants (group_id, user_id, position)
            VALUES (
                ?, ?,
                (SELECT COALESCE(MAX(position), -1) + 1
                 FROM group_participants WHERE group_id = ?)
            )
            """,
            (group_id, user_id, group_id),
        )
        return cursor.rowcount > 0

    def remove_participant(self, group_id: str, user_id: str) -> bool:
        """Remove a user from a group. Returns False if they weren't a member."""
        cursor = self.conn.cursor()
        cursor.execute(
            "DELETE FROM group_participants WHERE group_id = ? AND user_id = ?",
            (group_id, user_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    # ========================================================================
    # Expense operations
    # ========================================================================

    def save_expense(self, expense: Expense):
        """Save an expense and its splits."""
        self.conn.execute(
            """
            INSERT INTO expenses (id, group_id, amount, description, paid_by, date)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                expense.id,
                expense.group_id,
                str(expense.amount),
                expense.description,
                expense.paid_by,
                expense.date.isoformat(),
            ),
        )
        self.conn.executemany(
            """
            INSERT INTO expense_splits (expense_id, user_id, amount, position)
            VALUES (?, ?, ?, ?)
            """,
            [
                (expense.id, split.user_id, str(split.amount), position)
                for position, split in enumerate(expense.splits)
            ],
        )
        self.conn.commit()

    def get_expense(self, expense_id: str) -> Expense | None:
        """Get an expense by ID."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, amount, description, paid_by, date
            FROM expenses
            WHERE id = ?
            """,
            (expense_id,),
        )
        row = cursor.fetchone()
        return self._expense_from_row(row) if row else None

    def list_expenses(self, group_id: str) -> list[Expense]:
        """Get all expenses of a group, oldest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, amount, description, paid_by, date
            FROM expenses
            WHERE group_id = ?
            ORDER BY date, rowid
            """,
            (group_id,),
        )
        return [self._expense_from_row(row) for row in cursor.fetchall()]

    def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense and its splits. Returns False if it didn't exist."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def _expense_from_row(self, row: sqlite3.Row) -> Expense:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT user_id, amount FROM expense_splits
            WHERE expense_id = ?
            ORDER BY position
            """,
            (row["id"],),
        )
        splits = [
            ExpenseSplit(user_id=split["user_id"], amount=Decimal(split["amount"]))
            for split in cursor.fetchall()
        ]

        return Expense(
            id=row["id"],
            group_id=row["group_id"],
            amount=Decimal(row["amount"]),
            description=row["description"],
            paid_by=row["paid_by"],
            date=datetime.fromisoformat(row["date"]),
            splits=splits,
        )

    # ========================================================================
    # Settlement operations
    # ========================================================================

    def save_settlement(self, settlement: Settlement):
        """Save a settlement record."""
        self.conn.execute(
            """
            INSERT INTO settlements (
                id, group_id, from_user, to_user, amount, date, settled
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                settlement.id,
                settlement.group_id,
                settlement.from_user,
                settlement.to_user,
                str(settlement.amount),
                settlement.date.isoformat(),
                int(settlement.settled),
            ),
        )
        self.conn.commit()

    def get_settlement(self, settlement_id: str) -> Settlement | None:
        """Get a settlement by ID."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, from_user, to_user, amount, date, settled
            FROM settlements
            WHERE id = ?
            """,
            (settlement_id,),
        )
        row = cursor.fetchone()
        return self._settlement_from_row(row) if row else None

    def list_settlements(self, group_id: str) -> list[Settlement]:
        """Get all settlements of a group, newest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, from_user, to_user, amount, date, settled
            FROM settlements
            WHERE group_id = ?
            ORDER BY date DESC, rowid DESC
            """,
            (group_id,),
        )
        return [self._settlement_from_row(row) for row in cursor.fetchall()]

    def mark_settlement_settled(self, settlement_id: str) -> bool:
        """Flag a settlement as complete. Returns False if it didn't exist."""
        cursor = self.conn.cursor()
        cursor.execute(
            "UPDATE settlements SET settled = 1 WHERE id = ?", (settlement_id,)
        )
        self.conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _settlement_from_row(row: sqlite3.Row) -> Settlement:
        return Settlement(
            id=row["id"],
            group_id=row["group_id"],
            from_user=row["from_user"],
            to_user=row["to_user"],
            amount=Decimal(row["amount"]),
            date=datetime.fromisoformat(row["date"]),
            settled=bool(row["settled"]),
        )
