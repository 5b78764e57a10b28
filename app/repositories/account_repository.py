"""
Account repository.

Data access layer for Account model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Account repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_by_referral_code(self, referral_code: str) -> Account | None:
        """
        Get account by referral code.

        Args:
            referral_code: Referral code

        Returns:
            Account or None
        """
        return await self.get_by(referral_code=referral_code)

    async def get_by_username(self, username: str) -> Account | None:
        """Get account by username."""
        return await self.get_by(username=username)

    async def get_many(self, ids: list[int]) -> dict[int, Account]:
        """
        Get accounts by IDs.

        Args:
            ids: Account IDs

        Returns:
            Mapping of ID to account (missing IDs are absent)
        """
        if not ids:
            return {}
        stmt = select(Account).where(Account.id.in_(ids))
        result = await self.session.execute(stmt)
        return {account.id: account for account in result.scalars().all()}

    async def get_many_for_update(self, ids: list[int]) -> dict[int, Account]:
        """
        Lock accounts by IDs in ID order.

        Locking in a fixed order keeps concurrent multi-account
        operations from deadlocking each other.
        """
        if not ids:
            return {}
        await self.session.flush()
        stmt = (
            select(Account)
            .where(Account.id.in_(ids))
            .order_by(Account.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return {account.id: account for account in result.scalars().all()}

    async def get_downline_ids(
        self, account_id: int, max_depth: int | None = None
    ) -> list[tuple[int, int]]:
        """
        Walk the referral tree downward breadth-first.

        Args:
            account_id: Root of the walk
            max_depth: Levels to descend (None = whole subtree)

        Returns:
            List of (account_id, level) pairs, level 1 = direct referral
        """
        found: list[tuple[int, int]] = []
        seen: set[int] = {account_id}
        frontier = [account_id]
        level = 0

        while frontier:
            level += 1
            if max_depth is not None and level > max_depth:
                break
            stmt = select(Account.id).where(Account.referred_by_id.in_(frontier))
            result = await self.session.execute(stmt)
            children = [cid for cid in result.scalars().all() if cid not in seen]
            seen.update(children)
            found.extend((cid, level) for cid in children)
            frontier = children

        return found

    async def find_with_positive_benefit(
        self, after_id: int, limit: int
    ) -> list[Account]:
        """
        Keyset chunk of accounts whose benefit wallet is above zero.

        Args:
            after_id: Last ID of the previous chunk
            limit: Chunk size

        Returns:
            Accounts ordered by ID
        """
        stmt = (
            select(Account)
            .where(Account.id > after_id)
            .where(Account.benefit_balance > 0)
            .order_by(Account.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_with_mlm_level(
        self, after_id: int, limit: int
    ) -> list[Account]:
        """Keyset chunk of accounts with benefit and a non-zero MLM level."""
        stmt = (
            select(Account)
            .where(Account.id > after_id)
            .where(Account.mlm_level > 0)
            .where(Account.benefit_balance > 0)
            .order_by(Account.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_all_by_level(self) -> list[Account]:
        """All accounts, roots first, for chain rebuilds."""
        stmt = select(Account).order_by(Account.mlm_level, Account.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def total_balances(self) -> dict[str, Decimal]:
        """
        Sum of every bucket over all accounts.

        Returns:
            Mapping of bucket name to total
        """
        stmt = select(
            func.coalesce(func.sum(Account.normal_balance), 0),
            func.coalesce(func.sum(Account.benefit_balance), 0),
            func.coalesce(func.sum(Account.game_balance), 0),
            func.coalesce(func.sum(Account.withdrawal_balance), 0),
        )
        result = await self.session.execute(stmt)
        normal, benefit, game, withdrawal = result.one()
        return {
            "normal": Decimal(str(normal)),
            "benefit": Decimal(str(benefit)),
            "game": Decimal(str(game)),
            "withdrawal": Decimal(str(withdrawal)),
        }
