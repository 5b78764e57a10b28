"""
Referral chain builder.

Sole writer of the ancestor snapshot stored on each account. The snapshot
is a denormalized copy of the referred_by chain and is refreshed explicitly:
on registration, on referral reassignment and by the rebuild-all sweep.
"""

from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.account import Account
from app.repositories.account_repository import AccountRepository
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import NotFoundError, ValidationError


AncestorLink = dict[str, Any]


class ReferralChainBuilder:
    """Builds and maintains ancestor chains."""

    def __init__(
        self,
        session: AsyncSession,
        max_depth: int | None = None,
        rebuild_on_change: bool | None = None,
    ) -> None:
        """
        Initialize chain builder.

        Args:
            session: Async database session
            max_depth: Ancestor levels to keep (defaults to settings)
            rebuild_on_change: Rebuild the downline after reassignment
        """
        self.session = session
        self.account_repo = AccountRepository(session)
        self.max_depth = max_depth or settings.max_referral_depth
        self.rebuild_on_change = (
            settings.rebuild_on_referral_change
            if rebuild_on_change is None
            else rebuild_on_change
        )

    async def _get_account(self, account_id: int) -> Account:
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found", account_id=account_id)
        return account

    async def compute_chain(self, account: Account) -> list[AncestorLink]:
        """
        Walk referred_by upward from account.

        Stops at max_depth, at a missing parent, or when an ID repeats
        (a cycle in the stored graph is logged and the walk is truncated).

        Args:
            account: Account whose chain is computed

        Returns:
            Ordered links, level 1 = direct referrer
        """
        chain: list[AncestorLink] = []
        seen: set[int] = {account.id}
        parent_id = account.referred_by_id
        level = 1

        while parent_id is not None and level <= self.max_depth:
            if parent_id in seen:
                logger.warning(
                    "Referral loop detected",
                    extra={
                        "account_id": account.id,
                        "repeated_id": parent_id,
                        "chain_ids": [link["ancestor_id"] for link in chain],
                    },
                )
                break

            parent = await self.account_repo.get_by_id(parent_id)
            if parent is None:
                logger.warning(
                    "Referral chain references missing account",
                    extra={"account_id": account.id, "missing_id": parent_id},
                )
                break

            chain.append({"ancestor_id": parent.id, "level": level})
            seen.add(parent.id)
            parent_id = parent.referred_by_id
            level += 1

        return chain

    async def build_ancestor_chain(self, account_id: int) -> list[AncestorLink]:
        """
        Recompute and store the ancestor snapshot of account.

        Runs inside the caller's unit of work.

        Args:
            account_id: Account ID

        Returns:
            Stored ancestor links

        Raises:
            NotFoundError: Account does not exist
        """
        account = await self._get_account(account_id)
        chain = await self.compute_chain(account)

        # Reassign, JSON columns do not track in-place mutation
        account.ancestors = chain
        account.mlm_level = len(chain)
        await self.session.flush()

        logger.debug(
            "Ancestor chain built",
            extra={"account_id": account_id, "chain_length": len(chain)},
        )
        return chain

    async def _would_create_cycle(self, account_id: int, referrer_id: int) -> bool:
        """Check whether account already appears above referrer (unbounded walk)."""
        seen: set[int] = set()
        current_id: int | None = referrer_id

        while current_id is not None and current_id not in seen:
            if current_id == account_id:
                return True
            seen.add(current_id)
            current = await self.account_repo.get_by_id(current_id)
            current_id = current.referred_by_id if current else None

        return False

    async def rebuild_downline(self, account_id: int) -> int:
        """
        Rebuild account and every account below it.

        Returns:
            Number of chains rebuilt
        """
        await self.build_ancestor_chain(account_id)
        downline = await self.account_repo.get_downline_ids(account_id)
        for descendant_id, _level in downline:
            await self.build_ancestor_chain(descendant_id)
        return 1 + len(downline)

    @with_auto_commit
    async def assign_referrer(
        self, account_id: int, referrer_id: int | None
    ) -> list[AncestorLink]:
        """
        Set or clear the referrer of account.

        Args:
            account_id: Account being (re)assigned
            referrer_id: New referrer, None to detach

        Returns:
            New ancestor chain of account

        Raises:
            ValidationError: Self-referral or the edit would form a cycle
            NotFoundError: Account or referrer does not exist
        """
        account = await self._get_account(account_id)

        if referrer_id is not None:
            if referrer_id == account_id:
                raise ValidationError(
                    "Account cannot refer itself", account_id=account_id
                )
            await self._get_account(referrer_id)
            if await self._would_create_cycle(account_id, referrer_id):
                logger.warning(
                    "Referral loop detected",
                    extra={"account_id": account_id, "referrer_id": referrer_id},
                )
                raise ValidationError(
                    "Referral assignment would create a cycle",
                    account_id=account_id,
                    referrer_id=referrer_id,
                )

        previous = account.referred_by_id
        account.referred_by_id = referrer_id
        await self.session.flush()

        if self.rebuild_on_change:
            rebuilt = await self.rebuild_downline(account_id)
        else:
            await self.build_ancestor_chain(account_id)
            rebuilt = 1

        logger.info(
            "Referrer assigned",
            extra={
                "account_id": account_id,
                "previous_referrer_id": previous,
                "referrer_id": referrer_id,
                "chains_rebuilt": rebuilt,
            },
        )
        return account.ancestors

    @with_auto_commit
    async def rebuild_chain(self, account_id: int) -> list[AncestorLink]:
        """Rebuild and commit the chain of a single account."""
        return await self.build_ancestor_chain(account_id)

    @with_auto_commit
    async def rebuild_all_chains(self) -> tuple[int, int]:
        """
        Rebuild the ancestor snapshot of every account.

        A failing account is logged and skipped, the sweep continues.

        Returns:
            Tuple of (success_count, error_count)
        """
        accounts = await self.account_repo.find_all_by_level()
        success_count = 0
        error_count = 0

        for account in accounts:
            try:
                chain = await self.compute_chain(account)
                account.ancestors = chain
                account.mlm_level = len(chain)
                success_count += 1
            except Exception as e:
                error_count += 1
                logger.error(
                    "Failed to rebuild ancestor chain",
                    extra={"account_id": account.id, "error": str(e)},
                )

        await self.session.flush()

        logger.info(
            "Ancestor chains rebuilt",
            extra={"success": success_count, "errors": error_count},
        )
        return success_count, error_count
