"""
Wallet service.

User-initiated moves between the normal, benefit and game wallets.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import USER_TRANSFER_WALLETS
from app.config.settings import settings
from app.models.enums import EntryKind, WalletBucket
from app.services.base_service import BaseService
from app.services.ledger.ledger_service import LedgerService, parse_amount, parse_wallet
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import ValidationError
from app.utils.money import fraction_of


class WalletService(BaseService):
    """Wallet transfers initiated by the account holder."""

    def __init__(
        self,
        session: AsyncSession,
        game_funding_benefit_multiplier: Decimal | None = None,
    ) -> None:
        """
        Initialize wallet service.

        Args:
            session: Async database session
            game_funding_benefit_multiplier: Benefit consumed per unit moved
                from normal to game (defaults to settings)
        """
        super().__init__(session)
        self.ledger = LedgerService(session)
        self.game_funding_benefit_multiplier = (
            settings.game_funding_benefit_multiplier
            if game_funding_benefit_multiplier is None
            else game_funding_benefit_multiplier
        )

    @with_auto_commit
    async def transfer(
        self,
        account_id: int,
        from_wallet: str,
        to_wallet: str,
        amount: Decimal,
    ) -> dict:
        """
        Move amount between two of the account's user wallets.

        Moving normal to game also consumes amount * multiplier from the
        benefit wallet when benefit holds at least that much; otherwise
        only normal is debited.

        Args:
            account_id: Account ID
            from_wallet: Source bucket name
            to_wallet: Target bucket name
            amount: Amount to move

        Returns:
            Dict with moved amount, consumed benefit and new balances

        Raises:
            ValidationError: Bucket not user-transferable or same bucket
            InsufficientBalanceError: Source bucket too low
        """
        source = parse_wallet(from_wallet)
        target = parse_wallet(to_wallet)
        for bucket in (source, target):
            if bucket.value not in USER_TRANSFER_WALLETS:
                raise ValidationError(
                    "Wallet is not available for transfers", wallet=bucket.value
                )

        value = parse_amount(amount)
        account = await self.ledger.lock_account(account_id)

        description = f"Transfer {source.value} -> {target.value}"
        await self.ledger.transfer(
            account, source, target, value, EntryKind.WALLET_TRANSFER, description
        )

        consumed = Decimal("0")
        if source == WalletBucket.NORMAL and target == WalletBucket.GAME:
            required = fraction_of(value, self.game_funding_benefit_multiplier)
            if required > 0 and account.benefit_balance >= required:
                await self.ledger.debit(
                    account,
                    WalletBucket.BENEFIT,
                    required,
                    EntryKind.GAME_FUNDING_FEE,
                    f"Benefit consumed by game funding of {value}",
                )
                consumed = required

        self.logger.info(
            "Wallet transfer completed",
            extra={
                "account_id": account_id,
                "from": source.value,
                "to": target.value,
                "amount": str(value),
                "benefit_consumed": str(consumed),
            },
        )

        return {
            "amount": value,
            "benefit_consumed": consumed,
            "balances": account.balances(),
        }
