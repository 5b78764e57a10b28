"""
Ledger service.

The only code path that changes a wallet bucket. Every change writes
exactly one ledger entry per bucket touched, so that for every account
and bucket the balance equals the sum of its entries.

Primitives never commit. They run inside the caller's unit of work; the
caller commits once or rolls everything back.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.enums import EntryKind, EntryStatus, WalletBucket
from app.models.ledger_entry import LedgerEntry
from app.repositories.account_repository import AccountRepository
from app.repositories.ledger_entry_repository import LedgerEntryRepository
from app.services.base_service import BaseService
from app.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from app.utils.money import ZERO, to_decimal, truncate_money


AccountRef = Account | int

# Allowed status changes of a reservation entry
_STATUS_TRANSITIONS = {
    EntryStatus.PENDING.value: {
        EntryStatus.COMPLETED.value,
        EntryStatus.CANCELLED.value,
    },
}


def parse_wallet(wallet: WalletBucket | str) -> WalletBucket:
    """
    Coerce bucket name to WalletBucket.

    Raises:
        ValidationError: Unknown bucket
    """
    try:
        return WalletBucket(wallet)
    except ValueError as e:
        raise ValidationError("Unknown wallet bucket", wallet=str(wallet)) from e


def parse_amount(amount: Decimal | int | str) -> Decimal:
    """
    Validate and truncate a movement amount.

    Raises:
        ValidationError: Amount is not positive after truncation to cents
    """
    try:
        value = truncate_money(to_decimal(amount))
    except ValueError as e:
        raise ValidationError("Amount is not a number", amount=str(amount)) from e
    if value <= ZERO:
        raise ValidationError("Amount must be positive", amount=str(amount))
    return value


class LedgerService(BaseService):
    """
    Ledger primitives: credit, debit, transfer.

    Account arguments may be an ID (the row is then loaded with a lock)
    or an Account the caller already locked in this unit of work.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger service.

        Args:
            session: Async database session
        """
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.entry_repo = LedgerEntryRepository(session)

    async def lock_account(self, account_id: int) -> Account:
        """
        Load account with a row lock.

        Raises:
            NotFoundError: Account does not exist
        """
        account = await self.account_repo.get_for_update(account_id)
        if account is None:
            raise NotFoundError("Account not found", account_id=account_id)
        return account

    async def _resolve(self, account: AccountRef) -> Account:
        if isinstance(account, Account):
            return account
        return await self.lock_account(account)

    async def _write_entry(
        self,
        account: Account,
        wallet: WalletBucket,
        amount: Decimal,
        kind: EntryKind | str,
        description: str,
        related_account_id: int | None,
        status: EntryStatus,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            account_id=account.id,
            wallet=wallet.value,
            amount=amount,
            kind=EntryKind(kind).value,
            description=description,
            related_account_id=related_account_id,
            status=status.value,
        )
        return await self.entry_repo.add(entry)

    async def credit(
        self,
        account: AccountRef,
        wallet: WalletBucket | str,
        amount: Decimal | int | str,
        kind: EntryKind | str,
        description: str = "",
        related_account_id: int | None = None,
    ) -> LedgerEntry:
        """
        Add amount to bucket.

        Args:
            account: Account or account ID
            wallet: Bucket to credit
            amount: Positive amount (truncated to cents)
            kind: Entry kind
            description: Human-readable reason
            related_account_id: Counterparty (e.g. the source of a share)

        Returns:
            Written ledger entry

        Raises:
            ValidationError: Bad amount or bucket
            NotFoundError: Account does not exist
        """
        bucket = parse_wallet(wallet)
        value = parse_amount(amount)
        target = await self._resolve(account)

        setattr(target, bucket.column, target.balance_of(bucket) + value)
        return await self._write_entry(
            target,
            bucket,
            value,
            kind,
            description,
            related_account_id,
            EntryStatus.COMPLETED,
        )

    async def debit(
        self,
        account: AccountRef,
        wallet: WalletBucket | str,
        amount: Decimal | int | str,
        kind: EntryKind | str,
        description: str = "",
        related_account_id: int | None = None,
        status: EntryStatus = EntryStatus.COMPLETED,
    ) -> LedgerEntry:
        """
        Remove amount from bucket.

        The balance is checked before anything is mutated.

        Args:
            account: Account or account ID
            wallet: Bucket to debit
            amount: Positive amount (truncated to cents)
            kind: Entry kind
            description: Human-readable reason
            related_account_id: Counterparty
            status: PENDING for withdrawal reservations

        Returns:
            Written ledger entry (negative amount)

        Raises:
            InsufficientBalanceError: Bucket holds less than amount
            ValidationError: Bad amount or bucket
            NotFoundError: Account does not exist
        """
        bucket = parse_wallet(wallet)
        value = parse_amount(amount)
        target = await self._resolve(account)

        balance = target.balance_of(bucket)
        if balance < value:
            raise InsufficientBalanceError(
                f"Insufficient {bucket.value} balance",
                account_id=target.id,
                wallet=bucket.value,
                balance=str(balance),
                amount=str(value),
            )

        setattr(target, bucket.column, balance - value)
        return await self._write_entry(
            target,
            bucket,
            -value,
            kind,
            description,
            related_account_id,
            status,
        )

    async def transfer(
        self,
        account: AccountRef,
        from_wallet: WalletBucket | str,
        to_wallet: WalletBucket | str,
        amount: Decimal | int | str,
        kind: EntryKind | str,
        description: str = "",
    ) -> tuple[LedgerEntry, LedgerEntry]:
        """
        Move amount between two buckets of the same account.

        Returns:
            (debit entry, credit entry)

        Raises:
            ValidationError: Same bucket, bad amount or bucket
            InsufficientBalanceError: Source bucket holds less than amount
        """
        source = parse_wallet(from_wallet)
        target_bucket = parse_wallet(to_wallet)
        if source == target_bucket:
            raise ValidationError(
                "Source and target wallet must differ", wallet=source.value
            )

        target = await self._resolve(account)
        debit_entry = await self.debit(target, source, amount, kind, description)
        credit_entry = await self.credit(
            target, target_bucket, amount, kind, description
        )
        return debit_entry, credit_entry

    async def set_entry_status(
        self, entry_id: int, status: EntryStatus
    ) -> LedgerEntry:
        """
        Move a pending reservation entry to completed or cancelled.

        Amount, bucket and kind never change.

        Raises:
            NotFoundError: Entry does not exist
            ValidationError: Transition not allowed
        """
        entry = await self.entry_repo.get_for_update(entry_id)
        if entry is None:
            raise NotFoundError("Ledger entry not found", entry_id=entry_id)

        allowed = _STATUS_TRANSITIONS.get(entry.status, set())
        if status.value not in allowed:
            raise ValidationError(
                "Ledger entry status change not allowed",
                entry_id=entry_id,
                current=entry.status,
                requested=status.value,
            )

        entry.status = status.value
        await self.session.flush()
        return entry

    async def get_balances(self, account_id: int) -> dict[str, Decimal]:
        """
        Get current bucket balances.

        Raises:
            NotFoundError: Account does not exist
        """
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found", account_id=account_id)
        return account.balances()

    async def reconcile(self, account_id: int) -> dict[str, tuple[Decimal, Decimal]]:
        """
        Compare balances against the sum of ledger entries.

        Args:
            account_id: Account ID

        Returns:
            Mapping of bucket to (balance, entry sum) for every bucket that
            does not match. Empty when the account is consistent.
        """
        balances = await self.get_balances(account_id)
        sums = await self.entry_repo.sum_by_wallet(account_id)

        mismatches = {
            wallet: (balance, sums.get(wallet, ZERO))
            for wallet, balance in balances.items()
            if balance != sums.get(wallet, ZERO)
        }
        if mismatches:
            self.logger.error(
                "Ledger mismatch detected",
                extra={
                    "account_id": account_id,
                    "mismatches": {k: [str(a), str(b)] for k, (a, b) in mismatches.items()},
                },
            )
        return mismatches
