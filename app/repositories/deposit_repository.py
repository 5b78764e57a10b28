"""
Deposit repository.

Data access layer for Deposit model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.deposit import Deposit
from app.repositories.base import BaseRepository


class DepositRepository(BaseRepository[Deposit]):
    """Deposit repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize deposit repository."""
        super().__init__(Deposit, session)

    async def get_by_account(
        self, account_id: int, active_only: bool = False
    ) -> list[Deposit]:
        """
        Get deposits by account.

        Args:
            account_id: Account ID
            active_only: Only deposits still growing

        Returns:
            List of deposits
        """
        if active_only:
            return await self.find_by(account_id=account_id, is_active=True)
        return await self.find_by(account_id=account_id)

    async def get_active_for_accounts(
        self, account_ids: list[int]
    ) -> dict[int, list[Deposit]]:
        """
        Get growing deposits of a chunk of accounts.

        Args:
            account_ids: Account IDs

        Returns:
            Mapping of account ID to its active deposits
        """
        if not account_ids:
            return {}
        stmt = (
            select(Deposit)
            .where(Deposit.account_id.in_(account_ids))
            .where(Deposit.is_active == True)  # noqa: E712
            .order_by(Deposit.id)
            .with_for_update()
        )
        result = await self.session.execute(stmt)

        grouped: dict[int, list[Deposit]] = {}
        for deposit in result.scalars().all():
            grouped.setdefault(deposit.account_id, []).append(deposit)
        return grouped

    async def count_active(self) -> int:
        """Count deposits still growing."""
        return await self.count(is_active=True)
