"""
Profit distribution engine.

Splits an amount across the source account's ancestors by a per-level
percentage table and credits each share to the wallet its share type is
routed to. One call is all-or-nothing: it runs inside the caller's unit of
work, so a failure after some credits rolls back every one of them.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.mlm_levels import LevelTables, load_level_tables
from app.models.account import Account
from app.models.enums import EntryKind, ShareType
from app.models.profit_share import ProfitShare
from app.repositories.account_repository import AccountRepository
from app.repositories.profit_share_repository import ProfitShareRepository
from app.services.ledger.ledger_service import LedgerService
from app.utils.exceptions import NotFoundError
from app.utils.money import ZERO, percent_of


@dataclass
class ShareCredit:
    """One ancestor credit."""

    ancestor_id: int
    level: int
    percentage: Decimal
    amount: Decimal


@dataclass
class DistributionResult:
    """Result of one distribution."""

    share_type: ShareType
    source_account_id: int
    source_amount: Decimal
    total_distributed: Decimal = field(default_factory=lambda: ZERO)
    credits: list[ShareCredit] = field(default_factory=list)
    skipped_missing: list[int] = field(default_factory=list)

    @property
    def shares_count(self) -> int:
        return len(self.credits)


class ProfitDistributionEngine:
    """
    Ancestor profit distribution.

    Example:
        engine = ProfitDistributionEngine(session)
        result = await engine.distribute(account_id, Decimal("1000"),
                                         ShareType.DAILY_BENEFIT)
    """

    def __init__(
        self, session: AsyncSession, tables: LevelTables | None = None
    ) -> None:
        """
        Initialize distribution engine.

        Args:
            session: Async database session
            tables: Level tables and routing (defaults to configured tables)
        """
        self.session = session
        self.tables = tables or load_level_tables()
        self.account_repo = AccountRepository(session)
        self.share_repo = ProfitShareRepository(session)
        self.ledger = LedgerService(session)

    async def distribute(
        self,
        source: Account | int,
        total_amount: Decimal,
        share_type: ShareType,
        description: str | None = None,
    ) -> DistributionResult:
        """
        Distribute total_amount to the ancestors of source.

        Each ancestor at level L receives floor(total * pct(L) / 100).
        Levels without a percentage, zero shares and ancestors that no
        longer exist are skipped. The source account is not debited.

        Args:
            source: Source account or its ID
            total_amount: Amount the percentages apply to
            share_type: Share type, selects table and target wallet
            description: Entry description override

        Returns:
            DistributionResult

        Raises:
            NotFoundError: Source account does not exist
        """
        if isinstance(source, Account):
            source_account = source
        else:
            source_account = await self.account_repo.get_by_id(source)
            if source_account is None:
                raise NotFoundError("Source account not found", account_id=source)

        share_type = ShareType(share_type)
        result = DistributionResult(
            share_type=share_type,
            source_account_id=source_account.id,
            source_amount=total_amount,
        )

        route = self.tables.route(share_type)
        table = self.tables.table_for(share_type)
        if not table or total_amount <= 0:
            return result

        links = [
            link for link in (source_account.ancestors or [])
            if table.get(link["level"], ZERO) > 0
        ]
        if not links:
            return result

        ancestors = await self.account_repo.get_many_for_update(
            [link["ancestor_id"] for link in links]
        )
        label = description or (
            f"{share_type.value} from account #{source_account.id}"
        )

        for link in links:
            ancestor_id = link["ancestor_id"]
            level = link["level"]
            percentage = table[level]
            amount = percent_of(total_amount, percentage)

            if amount <= 0:
                continue

            ancestor = ancestors.get(ancestor_id)
            if ancestor is None:
                logger.warning(
                    "Ancestor not found, share skipped",
                    extra={
                        "source_account_id": source_account.id,
                        "ancestor_id": ancestor_id,
                        "level": level,
                        "share_type": share_type.value,
                    },
                )
                result.skipped_missing.append(ancestor_id)
                continue

            entry = await self.ledger.credit(
                ancestor,
                route.wallet,
                amount,
                EntryKind.MLM_BONUS,
                f"{label} (level {level})",
                related_account_id=source_account.id,
            )
            await self.share_repo.add(
                ProfitShare(
                    account_id=ancestor.id,
                    source_account_id=source_account.id,
                    level=level,
                    share_type=share_type.value,
                    percentage=percentage,
                    source_amount=total_amount,
                    amount=amount,
                    wallet=route.wallet.value,
                    ledger_entry_id=entry.id,
                    description=label,
                )
            )
            self._track_earnings(ancestor, share_type, amount)

            result.credits.append(
                ShareCredit(ancestor.id, level, percentage, amount)
            )
            result.total_distributed += amount

        logger.info(
            "Profit distributed",
            extra={
                "source_account_id": source_account.id,
                "share_type": share_type.value,
                "source_amount": str(total_amount),
                "total_distributed": str(result.total_distributed),
                "shares_count": result.shares_count,
                "skipped_missing": len(result.skipped_missing),
            },
        )
        return result

    @staticmethod
    def _track_earnings(
        ancestor: Account, share_type: ShareType, amount: Decimal
    ) -> None:
        ancestor.mlm_earnings_total += amount
        if share_type == ShareType.DAILY_BENEFIT:
            ancestor.mlm_earnings_daily += amount
        elif share_type == ShareType.LEVEL_BASED:
            ancestor.mlm_earnings_level_based += amount
