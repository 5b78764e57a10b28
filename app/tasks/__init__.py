"""
Tasks.

Session-owning entry points for scheduled and manual runs.
"""

from app.tasks.ledger_tasks import (
    rebuild_all_chains,
    reset_game_rooms,
    run_accrual_tick,
    run_daily_profit_sharing,
    run_level_based_profit_sharing,
)


__all__ = [
    "rebuild_all_chains",
    "reset_game_rooms",
    "run_accrual_tick",
    "run_daily_profit_sharing",
    "run_level_based_profit_sharing",
]
