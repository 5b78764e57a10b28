"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.account import Account
from app.models.base import Base
from app.models.deposit import Deposit
from app.models.deposit_request import DepositRequest
from app.models.enums import (
    EntryKind,
    EntryStatus,
    GameType,
    PayoutShape,
    RequestStatus,
    RoomStatus,
    ShareType,
    WalletBucket,
    WithdrawalMethod,
)
from app.models.game_player import GamePlayer
from app.models.game_room import GameRoom
from app.models.ledger_entry import LedgerEntry
from app.models.profit_share import ProfitShare
from app.models.withdrawal_request import WithdrawalRequest


__all__ = [
    "Account",
    "Base",
    "Deposit",
    "DepositRequest",
    "EntryKind",
    "EntryStatus",
    "GamePlayer",
    "GameRoom",
    "GameType",
    "LedgerEntry",
    "PayoutShape",
    "ProfitShare",
    "RequestStatus",
    "RoomStatus",
    "ShareType",
    "WalletBucket",
    "WithdrawalMethod",
    "WithdrawalRequest",
]
