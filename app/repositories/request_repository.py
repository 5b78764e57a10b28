"""
Deposit and withdrawal request repositories.

Data access layer for DepositRequest and WithdrawalRequest models.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.deposit_request import DepositRequest
from app.models.enums import RequestStatus
from app.models.withdrawal_request import WithdrawalRequest
from app.repositories.base import BaseRepository


class DepositRequestRepository(BaseRepository[DepositRequest]):
    """Deposit request repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize deposit request repository."""
        super().__init__(DepositRequest, session)

    async def get_pending(self, limit: int = 100) -> list[DepositRequest]:
        """Get pending requests, oldest first."""
        return await self.find_all(limit=limit, status=RequestStatus.PENDING.value)

    async def count_approved_for_account(self, account_id: int) -> int:
        """Count approved deposit requests of account."""
        return await self.count(
            account_id=account_id, status=RequestStatus.APPROVED.value
        )


class WithdrawalRequestRepository(BaseRepository[WithdrawalRequest]):
    """Withdrawal request repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal request repository."""
        super().__init__(WithdrawalRequest, session)

    async def get_pending(self, limit: int = 100) -> list[WithdrawalRequest]:
        """Get pending requests, oldest first."""
        return await self.find_all(limit=limit, status=RequestStatus.PENDING.value)
