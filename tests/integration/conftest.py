"""
Shared fixtures for integration tests.

Every test gets its own SQLite database file with the full schema, so
services run their real units of work (flush, commit, rollback).
"""

import itertools
from decimal import Decimal

import pytest

from app.config.database import create_engine, create_session_maker
from app.config.mlm_levels import LevelTables, ShareRoute
from app.models import Account, Base
from app.models.enums import EntryKind, ShareType, WalletBucket
from app.services.ledger.ledger_service import LedgerService
from app.services.referral.chain_builder import ReferralChainBuilder


@pytest.fixture
async def db_engine(tmp_path):
    """Async engine on a fresh SQLite file."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path}/ledger.db", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test engine."""
    return create_session_maker(db_engine)


@pytest.fixture
async def db_session(session_maker):
    """Session for one test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def create_account(db_session):
    """
    Create a committed account with an ancestor chain and funded wallets.

    Returns:
        Async callable(referrer=None, username=None, **balances) -> Account
        where balances are normal, benefit, game, withdrawal amounts
    """
    counter = itertools.count(1)

    async def _create(
        referrer: Account | None = None,
        username: str | None = None,
        **balances: str,
    ) -> Account:
        n = next(counter)
        account = Account(
            username=username or f"user{n}",
            referral_code=f"REF{n:05d}",
            referred_by_id=referrer.id if referrer else None,
            ancestors=[],
            mlm_level=0,
        )
        db_session.add(account)
        await db_session.flush()

        await ReferralChainBuilder(db_session).build_ancestor_chain(account.id)

        ledger = LedgerService(db_session)
        for wallet, amount in balances.items():
            if Decimal(amount) > 0:
                await ledger.credit(
                    account, WalletBucket(wallet), amount, EntryKind.DEPOSIT,
                    "Test funding",
                )

        await db_session.commit()
        return account

    return _create


@pytest.fixture
async def chain(create_account):
    """
    Linear referral chain root <- level1 <- level2 <- leaf.

    Returns:
        List [root, mid1, mid2, leaf]; leaf's level-1 ancestor is mid2
    """
    root = await create_account(username="root")
    mid1 = await create_account(referrer=root, username="mid1")
    mid2 = await create_account(referrer=mid1, username="mid2")
    leaf = await create_account(referrer=mid2, username="leaf")
    return [root, mid1, mid2, leaf]


@pytest.fixture
def three_level_tables():
    """15/10/5 table routed for every share type, credited to withdrawal."""
    return LevelTables(
        tables={"three": {1: Decimal("15"), 2: Decimal("10"), 3: Decimal("5")}},
        routes={
            share_type: ShareRoute("three", WalletBucket.WITHDRAWAL)
            for share_type in ShareType
        },
    )
