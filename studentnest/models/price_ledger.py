"""
Price ledger attached to a negotiation.

A plain value type: the four price fields plus expiry, with the
predicates the negotiation flow uses to validate economic input.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


@dataclass(frozen=True)
class PriceLedger:
    """
    Attributes:
        original_price: Listing price snapshotted at proposal time
        proposed_price: Student's offer
        counter_offer: Owner's counter, if any
        final_price: Agreed price, set only on acceptance
        expires_at: End of the current negotiation window
    """

    original_price: Decimal
    proposed_price: Decimal
    counter_offer: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    expires_at: Optional[datetime] = None

    def is_valid_proposal(self) -> bool:
        return Decimal("0") < self.proposed_price < self.original_price

    def is_valid_counter(self, amount: Decimal) -> bool:
        return self.proposed_price <= amount <= self.original_price

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    @property
    def current_offer(self) -> Decimal:
        """Price that an acceptance right now would lock in."""
        return self.counter_offer if self.counter_offer is not None else self.proposed_price

    @property
    def savings_amount(self) -> Decimal:
        return self.original_price - self.current_offer

    @property
    def discount_percentage(self) -> int:
        if not self.original_price:
            return 0
        ratio = self.savings_amount / self.original_price * 100
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
