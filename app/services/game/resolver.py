"""
Winning option resolution and payout arithmetic.

Pure functions, no database access.
"""

import random
from collections.abc import Sequence
from decimal import Decimal
from typing import NamedTuple

from app.models.enums import EntryKind, PayoutShape, WalletBucket
from app.utils.money import fraction_of, truncate_money


_system_random = random.SystemRandom()


class PayoutCredit(NamedTuple):
    """One credit paid to a winner."""

    wallet: WalletBucket
    amount: Decimal
    kind: EntryKind


def resolve_winning_option(
    options: Sequence[str],
    counts: dict[str, int],
    rng: random.Random | None = None,
) -> str:
    """
    Pick the winning option of a full room.

    If any option was picked by nobody, the winner is drawn uniformly
    among those options, so no player wins. Otherwise the least-picked
    option wins, ties going to the option listed first.

    Args:
        options: Options in tie-break order
        counts: Selections per option
        rng: Random source (defaults to the system CSPRNG)

    Returns:
        Winning option

    Example:
        {A: 0, B: 3, C: 2, D: 0} -> A or D
        {A: 3, B: 1, C: 2} -> B
    """
    if not options:
        raise ValueError("Room has no options")

    unpicked = [option for option in options if counts.get(option, 0) == 0]
    if unpicked:
        return (rng or _system_random).choice(unpicked)

    # min() keeps the first of equal elements
    return min(options, key=lambda option: counts.get(option, 0))


def compute_payout(
    shape: PayoutShape | str,
    entry_amount: Decimal,
    payout_amount: Decimal,
    payout_multiplier: Decimal,
    payout_wallet: WalletBucket | str,
    return_wallet: WalletBucket | str,
) -> list[PayoutCredit]:
    """
    Credits owed to one winning player.

    Args:
        shape: Payout shape of the room
        entry_amount: What the player staked
        payout_amount: Fixed prize (FIXED shape)
        payout_multiplier: Prize per staked unit (other shapes)
        payout_wallet: Wallet receiving the prize
        return_wallet: Wallet receiving the returned stake

    Returns:
        Non-zero credits; the GAME_WIN credit is the prize
    """
    shape = PayoutShape(shape)
    prize_wallet = WalletBucket(payout_wallet)

    if shape == PayoutShape.FIXED:
        credits = [
            PayoutCredit(prize_wallet, truncate_money(payout_amount), EntryKind.GAME_WIN)
        ]
    elif shape == PayoutShape.MULTIPLIER:
        credits = [
            PayoutCredit(
                prize_wallet,
                fraction_of(entry_amount, payout_multiplier),
                EntryKind.GAME_WIN,
            )
        ]
    else:
        credits = [
            PayoutCredit(
                prize_wallet,
                fraction_of(entry_amount, payout_multiplier),
                EntryKind.GAME_WIN,
            ),
            PayoutCredit(
                WalletBucket(return_wallet),
                truncate_money(entry_amount),
                EntryKind.GAME_RETURN,
            ),
        ]

    return [credit for credit in credits if credit.amount > 0]
