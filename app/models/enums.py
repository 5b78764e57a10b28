"""
Enumerations shared by models and services.

Values are persisted as plain strings.
"""

from enum import Enum


class WalletBucket(str, Enum):
    """The four balance buckets every account holds."""

    NORMAL = "normal"
    BENEFIT = "benefit"
    GAME = "game"
    WITHDRAWAL = "withdrawal"

    @property
    def column(self) -> str:
        """Account attribute holding this bucket's balance."""
        return f"{self.value}_balance"


class EntryKind(str, Enum):
    """Reason a ledger entry was written."""

    DEPOSIT = "deposit"
    DEPOSIT_BENEFIT = "deposit_benefit"
    DEPOSIT_GROWTH = "deposit_growth"
    DAILY_DEDUCTION = "daily_deduction"
    BENEFIT_TRANSFER = "benefit_transfer"
    GROWTH = "growth"
    MLM_BONUS = "mlm_bonus"
    GAME_ENTRY = "game_entry"
    GAME_WIN = "game_win"
    GAME_RETURN = "game_return"
    WALLET_TRANSFER = "wallet_transfer"
    GAME_FUNDING_FEE = "game_funding_fee"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_REFUND = "withdrawal_refund"


class EntryStatus(str, Enum):
    """Ledger entry status; only withdrawal reservations leave COMPLETED."""

    COMPLETED = "completed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class RequestStatus(str, Enum):
    """Deposit / withdrawal request lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ShareType(str, Enum):
    """Profit share trigger."""

    DEPOSIT_BONUS = "deposit_bonus"
    FIRST_DEPOSIT_BONUS = "first_deposit_bonus"
    WITHDRAWAL_BONUS = "withdrawal_bonus"
    WITHDRAWAL_REFERRAL_BONUS = "withdrawal_referral_bonus"
    GAME_WIN = "game_win"
    DAILY_BENEFIT = "daily_benefit"
    LEVEL_BASED = "level_based"


class GameType(str, Enum):
    """Game variant."""

    COLOR = "color"
    NUMBER = "number"


class RoomStatus(str, Enum):
    """Game room status."""

    WAITING = "waiting"
    COMPLETED = "completed"


class PayoutShape(str, Enum):
    """
    How a winner is paid.

    FIXED: room payout_amount credited to payout_wallet.
    MULTIPLIER: entry * payout_multiplier credited to payout_wallet.
    RETURN_PLUS_DELTA: entry returned to return_wallet plus
        entry * payout_multiplier credited to payout_wallet.
    """

    FIXED = "fixed"
    MULTIPLIER = "multiplier"
    RETURN_PLUS_DELTA = "return_plus_delta"


class WithdrawalMethod(str, Enum):
    """Payout method chosen by the account holder."""

    UPI = "upi"
    BANK = "bank"
