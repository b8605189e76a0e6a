"""Payment links shown next to settle-up transfers."""

from urllib.parse import urlencode

from .models import Transfer


def build_payment_link(base_url: str, transfer: Transfer) -> str:
    """
    Build the display link for a transfer.

    The link only carries who pays whom and how much; nothing is charged.

    Example:
        https://splitsavvy.app/pay?from=ab12&to=cd34&amount=50.00
    """
    query = urlencode(
        {
            "from": transfer.from_user,
            "to": transfer.to_user,
            "amount": f"{transfer.amount:.2f}",
        }
    )
    return f"{base_url}?{query}"
