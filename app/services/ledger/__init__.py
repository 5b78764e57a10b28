"""
Ledger services package.

- ledger_service: credit / debit / transfer primitives
- wallet_service: user-initiated wallet transfers
"""

from app.services.ledger.ledger_service import (
    LedgerService,
    parse_amount,
    parse_wallet,
)
from app.services.ledger.wallet_service import WalletService


__all__ = [
    "LedgerService",
    "WalletService",
    "parse_amount",
    "parse_wallet",
]
