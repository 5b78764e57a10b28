"""
Profit share repository.

Data access layer for ProfitShare model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profit_share import ProfitShare
from app.repositories.base import BaseRepository


class ProfitShareRepository(BaseRepository[ProfitShare]):
    """Profit share repository with analytics queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize profit share repository."""
        super().__init__(ProfitShare, session)

    async def add(self, share: ProfitShare) -> ProfitShare:
        """Stage share record."""
        self.session.add(share)
        await self.session.flush()
        return share

    async def get_earnings_by_type(self, account_id: int) -> dict[str, Decimal]:
        """
        Sum shares received by account per share type.

        Args:
            account_id: Receiving account ID

        Returns:
            Mapping of share type to total
        """
        stmt = (
            select(ProfitShare.share_type, func.sum(ProfitShare.amount))
            .where(ProfitShare.account_id == account_id)
            .group_by(ProfitShare.share_type)
        )
        result = await self.session.execute(stmt)
        return {
            share_type: Decimal(str(total)).quantize(Decimal("0.01"))
            for share_type, total in result.all()
        }
