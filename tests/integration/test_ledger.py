"""
Integration tests for ledger primitives and wallet transfers.

Covers:
- Balance equals sum of entries after every kind of movement
- Insufficient balance is rejected before mutation
- Reservation entry status transitions
- Normal to game transfer consuming benefit
"""

from decimal import Decimal

import pytest

from app.models.enums import EntryKind, EntryStatus, WalletBucket
from app.repositories.ledger_entry_repository import LedgerEntryRepository
from app.services.ledger.ledger_service import LedgerService
from app.services.ledger.wallet_service import WalletService
from app.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)


class TestLedgerPrimitives:
    """Credit, debit and transfer."""

    @pytest.mark.asyncio
    async def test_credit_writes_one_entry(self, db_session, create_account):
        account = await create_account()
        ledger = LedgerService(db_session)

        entry = await ledger.credit(
            account.id, "benefit", Decimal("12.349"), EntryKind.MLM_BONUS
        )
        await db_session.commit()

        assert entry.amount == Decimal("12.34")
        assert entry.wallet == "benefit"
        assert account.benefit_balance == Decimal("12.34")
        assert await ledger.reconcile(account.id) == {}

    @pytest.mark.asyncio
    async def test_debit_and_transfer_keep_balances_consistent(
        self, db_session, create_account
    ):
        account = await create_account(normal="100", benefit="50")
        ledger = LedgerService(db_session)

        await ledger.debit(account, WalletBucket.NORMAL, "30", EntryKind.DAILY_DEDUCTION)
        debit_entry, credit_entry = await ledger.transfer(
            account, "benefit", "withdrawal", "20", EntryKind.BENEFIT_TRANSFER
        )
        await db_session.commit()

        assert debit_entry.amount == Decimal("-20.00")
        assert credit_entry.amount == Decimal("20.00")
        assert account.balances() == {
            "normal": Decimal("70.00"),
            "benefit": Decimal("30.00"),
            "game": Decimal("0"),
            "withdrawal": Decimal("20.00"),
        }
        assert await ledger.reconcile(account.id) == {}

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, db_session, create_account):
        account = await create_account(normal="10")
        ledger = LedgerService(db_session)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await ledger.debit(account, "normal", "10.01", EntryKind.GAME_ENTRY)

        assert exc_info.value.context["wallet"] == "normal"
        assert account.normal_balance == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_debit_to_exactly_zero(self, db_session, create_account):
        account = await create_account(game="25")
        ledger = LedgerService(db_session)

        await ledger.debit(account, "game", "25", EntryKind.GAME_ENTRY)
        await db_session.commit()

        assert account.game_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_transfer_same_wallet_rejected(self, db_session, create_account):
        account = await create_account(normal="10")
        with pytest.raises(ValidationError):
            await LedgerService(db_session).transfer(
                account, "normal", "normal", "1", EntryKind.WALLET_TRANSFER
            )

    @pytest.mark.asyncio
    async def test_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            await LedgerService(db_session).credit(
                999, "normal", "1", EntryKind.DEPOSIT
            )

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, db_session, create_account):
        account = await create_account()
        with pytest.raises(ValidationError):
            await LedgerService(db_session).credit(
                account, "savings", "1", EntryKind.DEPOSIT
            )


class TestEntryStatus:
    """Reservation entries."""

    @pytest.mark.asyncio
    async def test_pending_to_completed(self, db_session, create_account):
        account = await create_account(withdrawal="600")
        ledger = LedgerService(db_session)

        entry = await ledger.debit(
            account, "withdrawal", "500", EntryKind.WITHDRAWAL,
            status=EntryStatus.PENDING,
        )
        updated = await ledger.set_entry_status(entry.id, EntryStatus.COMPLETED)
        await db_session.commit()

        assert updated.status == "completed"
        assert updated.amount == Decimal("-500.00")

    @pytest.mark.asyncio
    async def test_completed_entry_is_final(self, db_session, create_account):
        account = await create_account(normal="10")
        ledger = LedgerService(db_session)

        entry = await ledger.debit(account, "normal", "5", EntryKind.GAME_ENTRY)

        with pytest.raises(ValidationError):
            await ledger.set_entry_status(entry.id, EntryStatus.CANCELLED)

    @pytest.mark.asyncio
    async def test_missing_entry(self, db_session):
        with pytest.raises(NotFoundError):
            await LedgerService(db_session).set_entry_status(404, EntryStatus.COMPLETED)


class TestWalletService:
    """User wallet transfers."""

    @pytest.mark.asyncio
    async def test_normal_to_game_consumes_benefit(self, db_session, create_account):
        account = await create_account(normal="100", benefit="100")

        result = await WalletService(db_session).transfer(
            account.id, "normal", "game", Decimal("10")
        )

        assert result["benefit_consumed"] == Decimal("20.00")
        assert account.normal_balance == Decimal("90.00")
        assert account.game_balance == Decimal("10.00")
        assert account.benefit_balance == Decimal("80.00")

        kinds = {
            entry.kind
            for entry in await LedgerEntryRepository(db_session).get_for_account(
                account.id
            )
        }
        assert EntryKind.GAME_FUNDING_FEE.value in kinds

    @pytest.mark.asyncio
    async def test_benefit_not_consumed_when_short(self, db_session, create_account):
        account = await create_account(normal="100", benefit="5")

        result = await WalletService(db_session).transfer(
            account.id, "normal", "game", Decimal("10")
        )

        assert result["benefit_consumed"] == Decimal("0")
        assert account.benefit_balance == Decimal("5.00")

    @pytest.mark.asyncio
    async def test_withdrawal_wallet_not_user_transferable(
        self, db_session, create_account
    ):
        account = await create_account(withdrawal="100")

        with pytest.raises(ValidationError):
            await WalletService(db_session).transfer(
                account.id, "withdrawal", "normal", Decimal("10")
            )

    @pytest.mark.asyncio
    async def test_failed_transfer_rolls_back(self, db_session, create_account):
        account = await create_account(normal="5")

        with pytest.raises(InsufficientBalanceError):
            await WalletService(db_session).transfer(
                account.id, "normal", "game", Decimal("10")
            )

        await db_session.refresh(account)
        assert account.normal_balance == Decimal("5.00")
        assert account.game_balance == Decimal("0")
