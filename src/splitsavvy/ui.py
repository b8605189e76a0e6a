"""Interactive UI components for picking participants."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import User

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="aln" matches "Alan"
        query="bb" matches "Bobby"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class UserCompleter(Completer):
    """Fuzzy search completer for group participants."""

    def __init__(self, users: list[User]):
        """Initialize the completer with the people to choose from."""
        self.users = users

        # Display labels are unique even when names repeat
        self.label_to_id = {f"{user.name} ({user.id})": user.id for user in users}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for label in self.label_to_id:
            if not query or fuzzy_match(query, label.lower()):
                yield Completion(
                    text=label,
                    start_position=-len(document.text),
                    display=label,
                )

    def resolve(self, text: str) -> str | None:
        """Map typed text back to a user ID (full label, exact ID or exact name)."""
        text = text.strip()
        if text in self.label_to_id:
            return self.label_to_id[text]

        for user in self.users:
            if text == user.id:
                return user.id

        matches = [user.id for user in self.users if user.name.lower() == text.lower()]
        return matches[0] if len(matches) == 1 else None


def select_user_interactive(users: list[User], title: str = "Paid by") -> str | None:
    """
    Interactive participant selection with fuzzy search.

    Args:
        users: Participants to choose from
        title: Prompt label

    Returns:
        Selected user ID, or None to cancel
    """
    if not users:
        print("\n⚠️  This group has no participants yet")
        return None

    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    completer = UserCompleter(users)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt(f"{title}: ", complete_while_typing=True)

            if not result:
                return None

            user_id = completer.resolve(result)
            if user_id:
                logger.debug(f"User selected participant {user_id}")
                return user_id

            print("❌ Unknown participant. Please select from the list.")

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None


def confirm(message: str) -> bool:
    """Simple yes/no confirmation, defaulting to no."""
    response = input(f"{message} [y/N] ").strip().lower()
    return response in ("y", "yes")
