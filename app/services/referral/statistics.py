"""
Referral statistics module.

Downline listings and per-account network statistics.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.account_repository import AccountRepository
from app.repositories.profit_share_repository import ProfitShareRepository
from app.utils.exceptions import NotFoundError


class ReferralStatisticsManager:
    """Manages referral statistics and analytics."""

    def __init__(self, session: AsyncSession, max_depth: int = 30) -> None:
        """Initialize statistics manager."""
        self.session = session
        self.max_depth = max_depth
        self.account_repo = AccountRepository(session)
        self.share_repo = ProfitShareRepository(session)

    async def get_downline(
        self, account_id: int, level: int | None = None
    ) -> list[dict]:
        """
        Get accounts below account.

        Args:
            account_id: Root account ID
            level: Only this level (1 = direct referrals)

        Returns:
            List of dicts with account_id, username, level, mlm_level
        """
        depth = level if level is not None else self.max_depth
        pairs = await self.account_repo.get_downline_ids(account_id, depth)
        if level is not None:
            pairs = [(cid, lvl) for cid, lvl in pairs if lvl == level]

        accounts = await self.account_repo.get_many([cid for cid, _ in pairs])
        return [
            {
                "account_id": cid,
                "username": accounts[cid].username,
                "level": lvl,
                "mlm_level": accounts[cid].mlm_level,
            }
            for cid, lvl in pairs
            if cid in accounts
        ]

    async def get_network_stats(self, account_id: int) -> dict:
        """
        Get network statistics for account.

        Args:
            account_id: Account ID

        Returns:
            Dict with referral counts, per-level counts and earnings
        """
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found", account_id=account_id)

        pairs = await self.account_repo.get_downline_ids(account_id, self.max_depth)
        by_level: dict[int, int] = {}
        for _cid, lvl in pairs:
            by_level[lvl] = by_level.get(lvl, 0) + 1

        earnings = await self.share_repo.get_earnings_by_type(account_id)

        return {
            "account_id": account_id,
            "mlm_level": account.mlm_level,
            "direct_referrals": by_level.get(1, 0),
            "total_downline": len(pairs),
            "downline_by_level": by_level,
            "earnings_by_type": earnings,
            "mlm_earnings_total": account.mlm_earnings_total,
            "mlm_earnings_daily": account.mlm_earnings_daily,
            "mlm_earnings_level_based": account.mlm_earnings_level_based,
            "total_earned": sum(earnings.values(), Decimal("0")),
        }
