"""
Game services package.

- resolver: winning option and payout arithmetic
- game_service: rooms, joins and settlement
- reset_service: reopening completed rooms
"""

from app.services.game.game_service import (
    GameService,
    JoinResult,
    SettlementResult,
    WinnerPayout,
)
from app.services.game.reset_service import GameResetService, default_reset_delay
from app.services.game.resolver import (
    PayoutCredit,
    compute_payout,
    resolve_winning_option,
)


__all__ = [
    "GameResetService",
    "GameService",
    "JoinResult",
    "PayoutCredit",
    "SettlementResult",
    "WinnerPayout",
    "compute_payout",
    "default_reset_delay",
    "resolve_winning_option",
]
