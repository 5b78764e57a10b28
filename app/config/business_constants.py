"""
Business logic constants for the wallet ledger.

Central location for business rules and constants used across the application.
This module must not import settings so that settings can use its defaults.
"""

from decimal import Decimal


# Every stored money amount is truncated to this quantum
MONEY_QUANTUM = Decimal("0.01")

# Nightly decay: 0.5% of normal is deducted, 1% of benefit moves to withdrawal
DEFAULT_DAILY_NORMAL_RATE = Decimal("0.005")
DEFAULT_DAILY_BENEFIT_RATE = Decimal("0.01")

# Per-deposit growth credited on every tick while the deposit is active
DEFAULT_NORMAL_GROWTH_RATE = Decimal("0.05")
DEFAULT_BENEFIT_GROWTH_RATE = Decimal("0.10")

# Deposit lifetimes in days
DEFAULT_DEPOSIT_DAY_CAP = 200
EXTENDED_DEPOSIT_DAY_CAP = 400

# Game option sets, in tie-break order
COLOR_OPTIONS = ("red", "green", "blue", "yellow")
NUMBER_OPTIONS = ("small", "big")
MIN_ROOM_OPTIONS = 2

# Wallet buckets a user may move money between
USER_TRANSFER_WALLETS = ("normal", "benefit", "game")
