"""
Ledger entry repository.

Data access layer for LedgerEntry model. Entries are inserted and read,
only the status of reservation entries is ever updated.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ledger_entry import LedgerEntry
from app.repositories.base import BaseRepository


class LedgerEntryRepository(BaseRepository[LedgerEntry]):
    """Ledger entry repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger entry repository."""
        super().__init__(LedgerEntry, session)

    async def add(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Stage entry and flush so that its ID is assigned.

        Args:
            entry: New ledger entry

        Returns:
            Same entry with ID populated
        """
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_for_account(
        self,
        account_id: int,
        wallet: str | None = None,
        kind: str | None = None,
        limit: int = 50,
    ) -> list[LedgerEntry]:
        """
        Get most recent entries of account.

        Args:
            account_id: Account ID
            wallet: Optional bucket filter
            kind: Optional entry kind filter
            limit: Max number of entries

        Returns:
            Entries newest first
        """
        stmt = select(LedgerEntry).where(LedgerEntry.account_id == account_id)
        if wallet:
            stmt = stmt.where(LedgerEntry.wallet == wallet)
        if kind:
            stmt = stmt.where(LedgerEntry.kind == kind)
        stmt = stmt.order_by(LedgerEntry.id.desc()).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_by_wallet(self, account_id: int) -> dict[str, Decimal]:
        """
        Sum entry amounts per bucket for account.

        Every bucket balance must equal the sum reported here.

        Args:
            account_id: Account ID

        Returns:
            Mapping of bucket name to sum (buckets without entries are absent)
        """
        stmt = (
            select(LedgerEntry.wallet, func.sum(LedgerEntry.amount))
            .where(LedgerEntry.account_id == account_id)
            .group_by(LedgerEntry.wallet)
        )
        result = await self.session.execute(stmt)
        return {
            wallet: Decimal(str(total)).quantize(Decimal("0.01"))
            for wallet, total in result.all()
        }
