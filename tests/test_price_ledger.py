"""
Tests for the negotiation price ledger predicates and derived amounts.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from studentnest.models.price_ledger import PriceLedger


class TestPriceLedger:

    def setup_method(self):
        self.ledger = PriceLedger(original_price=Decimal("12000"), proposed_price=Decimal("9000"))

    # ------------------------------------------------------------------ #
    # Proposal bounds
    # ------------------------------------------------------------------ #

    @pytest.mark.parametrize("price,valid", [
        ("9000", True),
        ("11999.99", True),
        ("0.01", True),
        ("12000", False),
        ("15000", False),
        ("0", False),
        ("-100", False),
    ])
    def test_proposal_must_be_between_zero_and_original(self, price, valid):
        ledger = PriceLedger(original_price=Decimal("12000"), proposed_price=Decimal(price))
        assert ledger.is_valid_proposal() is valid

    # ------------------------------------------------------------------ #
    # Counter bounds (inclusive on both ends)
    # ------------------------------------------------------------------ #

    @pytest.mark.parametrize("amount,valid", [
        ("9000", True),
        ("10500", True),
        ("12000", True),
        ("8999.99", False),
        ("12000.01", False),
    ])
    def test_counter_must_lie_within_proposed_and_original(self, amount, valid):
        assert self.ledger.is_valid_counter(Decimal(amount)) is valid

    # ------------------------------------------------------------------ #
    # Derived values
    # ------------------------------------------------------------------ #

    def test_current_offer_prefers_counter(self):
        assert self.ledger.current_offer == Decimal("9000")
        countered = PriceLedger(
            original_price=Decimal("12000"),
            proposed_price=Decimal("9000"),
            counter_offer=Decimal("10500"),
        )
        assert countered.current_offer == Decimal("10500")

    def test_savings_and_discount(self):
        """12000 -> 9000 saves 3000, a 25% discount."""
        assert self.ledger.savings_amount == Decimal("3000")
        assert self.ledger.discount_percentage == 25

    def test_discount_rounds_half_up(self):
        """12000 -> 10500 is 12.5%, reported as 13."""
        ledger = PriceLedger(
            original_price=Decimal("12000"),
            proposed_price=Decimal("9000"),
            counter_offer=Decimal("10500"),
        )
        assert ledger.discount_percentage == 13

    def test_expiry_is_strictly_after_deadline(self):
        deadline = datetime(2024, 12, 4, 10, 0, 0)
        ledger = PriceLedger(
            original_price=Decimal("12000"),
            proposed_price=Decimal("9000"),
            expires_at=deadline,
        )
        assert ledger.is_expired(datetime(2024, 12, 4, 9, 59, 59)) is False
        assert ledger.is_expired(deadline) is False
        assert ledger.is_expired(datetime(2024, 12, 4, 10, 0, 1)) is True
