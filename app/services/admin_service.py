"""
Admin service.

Trigger surface for administrative operations. Every method returns a
ServiceResult: domain errors become failed results, anything else
(including a rolled-back batch) propagates to the caller.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.mlm_levels import LevelTables, load_level_tables
from app.config.settings import settings
from app.repositories.account_repository import AccountRepository
from app.repositories.deposit_repository import DepositRepository
from app.services.accrual.accrual_service import AccrualService
from app.services.base_service import BaseService, ServiceResult
from app.services.deposit_service import DepositService
from app.services.game.game_service import GameService
from app.services.ledger.ledger_service import LedgerService
from app.services.referral.chain_builder import ReferralChainBuilder
from app.services.referral.profit_share_service import ProfitShareService
from app.services.referral.statistics import ReferralStatisticsManager
from app.services.withdrawal_service import WithdrawalService
from app.utils.exceptions import LedgerError, is_domain_error


class AdminService(BaseService):
    """
    Administrative operations.

    Example:
        admin = AdminService(session)
        result = await admin.approve_deposit(request_id=7, admin_id=1)
        if not result.success:
            print(result.error_code, result.error)
    """

    def __init__(
        self, session: AsyncSession, tables: LevelTables | None = None
    ) -> None:
        """
        Initialize admin service.

        Args:
            session: Async database session
            tables: Level tables shared by every distributing service
        """
        super().__init__(session)
        self.tables = tables or load_level_tables()
        self.account_repo = AccountRepository(session)
        self.deposit_repo = DepositRepository(session)
        self.deposits = DepositService(session, self.tables)
        self.withdrawals = WithdrawalService(session, self.tables)
        self.games = GameService(session, tables=self.tables)
        self.profit_sharing = ProfitShareService(session, self.tables)
        self.accrual = AccrualService(session)
        self.chain_builder = ReferralChainBuilder(session)
        self.statistics = ReferralStatisticsManager(session, settings.max_referral_depth)
        self.ledger = LedgerService(session)

    async def _run(
        self,
        operation: str,
        call: Callable[[], Awaitable[Any]],
        to_data: Callable[[Any], Awaitable[dict]],
    ) -> ServiceResult:
        try:
            outcome = await call()
        except LedgerError as e:
            if not is_domain_error(e):
                raise
            self.logger.warning(
                f"{operation} rejected",
                extra={"operation": operation, "error_code": e.error_code, **e.context},
            )
            return ServiceResult.from_error(e)
        return ServiceResult.ok(await to_data(outcome))

    async def _balances(self, account_id: int) -> dict[str, Decimal]:
        account = await self.account_repo.get_by_id(account_id)
        return account.balances() if account else {}

    # Deposits

    async def approve_deposit(self, request_id: int, admin_id: int) -> ServiceResult:
        """Approve a deposit request."""

        async def to_data(request) -> dict:
            return {
                "request_id": request.id,
                "status": request.status,
                "fee_amount": request.fee_amount,
                "final_amount": request.final_amount,
                "deposit_id": request.deposit_id,
                "balances": await self._balances(request.account_id),
            }

        return await self._run(
            "approve_deposit",
            lambda: self.deposits.approve(request_id, admin_id),
            to_data,
        )

    async def reject_deposit(
        self, request_id: int, admin_id: int, reason: str | None = None
    ) -> ServiceResult:
        """Reject a deposit request."""

        async def to_data(request) -> dict:
            return {"request_id": request.id, "status": request.status}

        return await self._run(
            "reject_deposit",
            lambda: self.deposits.reject(request_id, admin_id, reason),
            to_data,
        )

    async def get_pending_requests(self, limit: int = 100) -> ServiceResult:
        """Deposit and withdrawal requests awaiting a decision, oldest first."""
        deposits = await self.deposits.request_repo.get_pending(limit)
        withdrawals = await self.withdrawals.request_repo.get_pending(limit)
        return ServiceResult.ok(
            {
                "deposits": [
                    {
                        "request_id": request.id,
                        "account_id": request.account_id,
                        "amount": request.amount,
                    }
                    for request in deposits
                ],
                "withdrawals": [
                    {
                        "request_id": request.id,
                        "account_id": request.account_id,
                        "amount": request.amount,
                        "method": request.method,
                        "destination": request.destination,
                    }
                    for request in withdrawals
                ],
            }
        )

    # Withdrawals

    async def approve_withdrawal(
        self, request_id: int, admin_id: int, remarks: str | None = None
    ) -> ServiceResult:
        """Approve a withdrawal request."""

        async def to_data(request) -> dict:
            return {
                "request_id": request.id,
                "status": request.status,
                "fee_amount": request.fee_amount,
                "final_amount": request.final_amount,
                "balances": await self._balances(request.account_id),
            }

        return await self._run(
            "approve_withdrawal",
            lambda: self.withdrawals.approve(request_id, admin_id, remarks),
            to_data,
        )

    async def reject_withdrawal(
        self, request_id: int, admin_id: int, reason: str
    ) -> ServiceResult:
        """Reject a withdrawal request and refund it."""

        async def to_data(request) -> dict:
            return {
                "request_id": request.id,
                "status": request.status,
                "balances": await self._balances(request.account_id),
            }

        return await self._run(
            "reject_withdrawal",
            lambda: self.withdrawals.reject(request_id, admin_id, reason),
            to_data,
        )

    # Games

    async def join_room(
        self,
        account_id: int,
        room_code: str,
        option: str,
        entry_amount: Decimal | None = None,
    ) -> ServiceResult:
        """Join an account into a room."""

        async def to_data(result) -> dict:
            return {
                "room_code": result.room_code,
                "current_players": result.current_players,
                "max_players": result.max_players,
                "completed": result.completed,
                "winning_option": result.winning_option,
                "winners": [winner.account_id for winner in result.winners],
                "balances": result.balances,
            }

        return await self._run(
            "join_room",
            lambda: self.games.join_room(account_id, room_code, option, entry_amount),
            to_data,
        )

    # Scheduled runs

    async def run_daily(self) -> ServiceResult:
        """Run daily benefit profit sharing now."""

        async def to_data(result) -> dict:
            return result.to_dict()

        return await self._run(
            "run_daily", self.profit_sharing.run_daily_profit_sharing, to_data
        )

    async def run_level_based(self) -> ServiceResult:
        """Run level-based profit sharing now."""

        async def to_data(result) -> dict:
            return result.to_dict()

        return await self._run(
            "run_level_based",
            self.profit_sharing.run_level_based_profit_sharing,
            to_data,
        )

    async def run_daily_accrual(self) -> ServiceResult:
        """Run the accrual tick now."""

        async def to_data(result) -> dict:
            return result.to_dict()

        return await self._run("run_daily_accrual", self.accrual.run_daily_tick, to_data)

    # Referral chains

    async def rebuild_chain(self, account_id: int) -> ServiceResult:
        """Rebuild the ancestor chain of one account."""

        async def to_data(chain) -> dict:
            return {"account_id": account_id, "ancestors": chain, "mlm_level": len(chain)}

        return await self._run(
            "rebuild_chain",
            lambda: self.chain_builder.rebuild_chain(account_id),
            to_data,
        )

    async def rebuild_all_chains(self) -> ServiceResult:
        """Rebuild every ancestor chain."""

        async def to_data(counts) -> dict:
            success_count, error_count = counts
            return {"success": success_count, "errors": error_count}

        return await self._run(
            "rebuild_all_chains", self.chain_builder.rebuild_all_chains, to_data
        )

    # Reporting

    async def get_system_totals(self) -> ServiceResult:
        """Totals of every bucket across all accounts."""
        totals = await self.account_repo.total_balances()
        return ServiceResult.ok(
            {
                "balances": totals,
                "accounts": await self.account_repo.count(),
                "active_deposits": await self.deposit_repo.count_active(),
            }
        )

    async def get_network_stats(self, account_id: int) -> ServiceResult:
        """Downline counts and MLM earnings of an account."""

        async def to_data(stats) -> dict:
            return stats

        return await self._run(
            "get_network_stats",
            lambda: self.statistics.get_network_stats(account_id),
            to_data,
        )

    async def reconcile_account(self, account_id: int) -> ServiceResult:
        """Compare an account's balances with its ledger entries."""

        async def to_data(mismatches) -> dict:
            return {
                "account_id": account_id,
                "consistent": not mismatches,
                "mismatches": {
                    wallet: {"balance": balance, "entries": entries}
                    for wallet, (balance, entries) in mismatches.items()
                },
            }

        return await self._run(
            "reconcile_account",
            lambda: self.ledger.reconcile(account_id),
            to_data,
        )

    def get_level_structure(self) -> dict:
        """Configured level tables and share routing."""
        return self.tables.describe()
