"""
Tests for winning option resolution and payout arithmetic.

Covers:
- Zero-count preference
- Least-picked option with first-listed tie-break
- Payout shapes
"""

from decimal import Decimal

import pytest

from app.models.enums import EntryKind, PayoutShape, WalletBucket
from app.services.game.resolver import compute_payout, resolve_winning_option


class TestResolveWinningOption:
    """Winner selection."""

    def test_unpicked_options_win(self, seeded_rng):
        counts = {"A": 0, "B": 3, "C": 2, "D": 0}
        for _ in range(50):
            assert resolve_winning_option(["A", "B", "C", "D"], counts, seeded_rng) in {"A", "D"}

    def test_every_unpicked_option_can_win(self, seeded_rng):
        counts = {"A": 0, "B": 3, "C": 2, "D": 0}
        winners = {
            resolve_winning_option(["A", "B", "C", "D"], counts, seeded_rng)
            for _ in range(200)
        }
        assert winners == {"A", "D"}

    def test_least_picked_wins(self):
        assert resolve_winning_option(["A", "B", "C"], {"A": 3, "B": 1, "C": 2}) == "B"

    def test_tie_goes_to_first_listed(self):
        assert resolve_winning_option(["A", "B", "C"], {"A": 2, "B": 1, "C": 1}) == "B"
        assert resolve_winning_option(["C", "B"], {"B": 1, "C": 1}) == "C"

    def test_missing_count_means_unpicked(self, seeded_rng):
        assert resolve_winning_option(["small", "big"], {"small": 4}, seeded_rng) == "big"

    def test_no_options(self):
        with pytest.raises(ValueError):
            resolve_winning_option([], {})


class TestComputePayout:
    """Payout shapes."""

    def test_fixed(self):
        credits = compute_payout(
            PayoutShape.FIXED, Decimal("10"), Decimal("100"), Decimal("1"),
            WalletBucket.NORMAL, WalletBucket.NORMAL,
        )
        assert credits == [(WalletBucket.NORMAL, Decimal("100.00"), EntryKind.GAME_WIN)]

    def test_multiplier(self):
        credits = compute_payout(
            "multiplier", Decimal("25"), Decimal("0"), Decimal("1.5"),
            "withdrawal", "normal",
        )
        assert credits == [(WalletBucket.WITHDRAWAL, Decimal("37.50"), EntryKind.GAME_WIN)]

    def test_return_plus_delta(self):
        credits = compute_payout(
            PayoutShape.RETURN_PLUS_DELTA, Decimal("50"), Decimal("0"), Decimal("1"),
            WalletBucket.WITHDRAWAL, WalletBucket.NORMAL,
        )
        assert credits == [
            (WalletBucket.WITHDRAWAL, Decimal("50.00"), EntryKind.GAME_WIN),
            (WalletBucket.NORMAL, Decimal("50.00"), EntryKind.GAME_RETURN),
        ]

    def test_zero_prize_is_dropped(self):
        credits = compute_payout(
            PayoutShape.RETURN_PLUS_DELTA, Decimal("50"), Decimal("0"), Decimal("0"),
            WalletBucket.WITHDRAWAL, WalletBucket.NORMAL,
        )
        assert credits == [(WalletBucket.NORMAL, Decimal("50.00"), EntryKind.GAME_RETURN)]
