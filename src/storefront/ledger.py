"""
Points ledger derived from order history.

There is no stored ledger table: every points movement is recorded on the
order that caused it (pointsUsed, pointsEarned). This module replays orders
into a chronological list of movements for auditing, and checks that the
movements add up to a customer's current balance.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from .models import LedgerEntry, Order, User

EARNED = "earned"
SPENT = "spent"


@dataclass(frozen=True)
class Reconciliation:
    """Ledger total versus stored balance for one customer."""

    user_id: str
    ledger_balance: int
    current_balance: int

    @property
    def consistent(self) -> bool:
        return self.ledger_balance == self.current_balance

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "ledgerBalance": self.ledger_balance,
            "currentBalance": self.current_balance,
            "consistent": self.consistent,
        }


def entries_for_order(order: Order) -> list[LedgerEntry]:
    """Movements caused by one order, in the order they were applied."""
    entries = []
    if order.points_used > 0:
        entries.append(
            LedgerEntry(
                order_id=order.id,
                user_id=order.user_id,
                customer_email=order.customer_email,
                kind=SPENT,
                points=order.points_used,
                created_at=order.created_at,
            )
        )
    if order.points_earned > 0:
        entries.append(
            LedgerEntry(
                order_id=order.id,
                user_id=order.user_id,
                customer_email=order.customer_email,
                kind=EARNED,
                points=order.points_earned,
                created_at=order.created_at,
            )
        )
    return entries


def build_ledger(orders: Iterable[Order], user_id: str | None = None) -> list[LedgerEntry]:
    """
    Build the points ledger, newest first.

    Args:
        orders: Order history in the order it was recorded.
        user_id: Restrict to one customer.

    Within a single order the earned entry comes before the spent entry,
    since redemption is applied first and earning last.
    """
    timeline: list[tuple[str, int, int, LedgerEntry]] = []
    for position, order in enumerate(orders):
        if user_id is not None and order.user_id != user_id:
            continue
        for seq, entry in enumerate(entries_for_order(order)):
            timeline.append((order.created_at, position, seq, entry))
    timeline.sort(key=lambda t: (t[0], t[1], t[2]), reverse=True)
    return [t[3] for t in timeline]


def ledger_balance(entries: Iterable[LedgerEntry], user_id: str) -> int:
    """Net points for a customer according to the ledger."""
    return sum(e.delta for e in entries if e.user_id == user_id)


def reconcile(orders: Iterable[Order], customer: User) -> Reconciliation:
    """Compare a customer's stored balance with their ledger total."""
    entries = build_ledger(orders, user_id=customer.id)
    return Reconciliation(
        user_id=customer.id,
        ledger_balance=ledger_balance(entries, customer.id),
        current_balance=customer.loyalty_points,
    )
