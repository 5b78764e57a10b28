"""
Integration tests for the referral graph.

Covers:
- Ancestor snapshots on creation
- Self-referral and cycle rejection
- Downline rebuild after reassignment
- Registration with referral code
- Network statistics
"""

import pytest

from app.models.account import Account
from app.services.account_service import AccountService
from app.services.referral.chain_builder import ReferralChainBuilder
from app.services.referral.statistics import ReferralStatisticsManager
from app.utils.exceptions import NotFoundError, ValidationError


def _ids(account) -> list[tuple[int, int]]:
    return [(link["ancestor_id"], link["level"]) for link in account.ancestors]


class TestAncestorChains:
    """Snapshot contents."""

    @pytest.mark.asyncio
    async def test_chain_levels(self, chain):
        root, mid1, mid2, leaf = chain

        assert _ids(leaf) == [(mid2.id, 1), (mid1.id, 2), (root.id, 3)]
        assert leaf.mlm_level == 3
        assert root.ancestors == []
        assert root.mlm_level == 0

    @pytest.mark.asyncio
    async def test_max_depth_truncates(self, db_session, chain):
        _root, mid1, mid2, leaf = chain

        links = await ReferralChainBuilder(db_session, max_depth=2).rebuild_chain(
            leaf.id
        )

        assert [(link["ancestor_id"], link["level"]) for link in links] == [
            (mid2.id, 1),
            (mid1.id, 2),
        ]
        assert leaf.mlm_level == 2

    @pytest.mark.asyncio
    async def test_rebuild_all_restores_snapshots(self, db_session, chain):
        root, mid1, mid2, leaf = chain
        leaf.ancestors = []
        leaf.mlm_level = 0
        await db_session.commit()

        success, errors = await ReferralChainBuilder(db_session).rebuild_all_chains()

        assert (success, errors) == (4, 0)
        assert _ids(leaf) == [(mid2.id, 1), (mid1.id, 2), (root.id, 3)]


class TestAssignReferrer:
    """Referrer edits."""

    @pytest.mark.asyncio
    async def test_self_referral_rejected(self, db_session, create_account):
        account = await create_account()
        account_id = account.id

        with pytest.raises(ValidationError, match="refer itself"):
            await ReferralChainBuilder(db_session).assign_referrer(account_id, account_id)

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, db_session, chain):
        root_id, leaf_id = chain[0].id, chain[3].id

        with pytest.raises(ValidationError, match="cycle"):
            await ReferralChainBuilder(db_session).assign_referrer(root_id, leaf_id)

        root = await db_session.get(Account, root_id)
        await db_session.refresh(root)
        assert root.referred_by_id is None

    @pytest.mark.asyncio
    async def test_unknown_referrer(self, db_session, create_account):
        account = await create_account()
        account_id = account.id

        with pytest.raises(NotFoundError):
            await ReferralChainBuilder(db_session).assign_referrer(account_id, 999)

    @pytest.mark.asyncio
    async def test_reassignment_rebuilds_downline(
        self, db_session, chain, create_account
    ):
        root, mid1, mid2, leaf = chain
        sponsor = await create_account(username="sponsor")

        await ReferralChainBuilder(db_session, rebuild_on_change=True).assign_referrer(
            mid1.id, sponsor.id
        )

        assert _ids(mid1) == [(sponsor.id, 1)]
        assert _ids(mid2) == [(mid1.id, 1), (sponsor.id, 2)]
        assert _ids(leaf) == [(mid2.id, 1), (mid1.id, 2), (sponsor.id, 3)]

    @pytest.mark.asyncio
    async def test_detach(self, db_session, chain):
        _root, mid1, mid2, leaf = chain

        await ReferralChainBuilder(db_session, rebuild_on_change=True).assign_referrer(
            mid1.id, None
        )

        assert mid1.ancestors == []
        assert _ids(leaf) == [(mid2.id, 1), (mid1.id, 2)]


class TestRegistration:
    """Account registration."""

    @pytest.mark.asyncio
    async def test_register_with_referral_code(self, db_session, chain):
        root, mid1, _mid2, _leaf = chain

        account = await AccountService(db_session).register_account(
            "alice", referral_code=mid1.referral_code
        )

        assert account.referred_by_id == mid1.id
        assert _ids(account) == [(mid1.id, 1), (root.id, 2)]
        assert account.referral_code

    @pytest.mark.asyncio
    async def test_register_without_referrer(self, db_session):
        account = await AccountService(db_session).register_account("bob")

        assert account.referred_by_id is None
        assert account.mlm_level == 0

    @pytest.mark.asyncio
    async def test_unknown_referral_code(self, db_session):
        with pytest.raises(NotFoundError, match="Referral code not found"):
            await AccountService(db_session).register_account("carol", "NOPE")

    @pytest.mark.asyncio
    async def test_duplicate_username(self, db_session, create_account):
        await create_account(username="dave")

        with pytest.raises(ValidationError, match="already registered"):
            await AccountService(db_session).register_account("dave")

    @pytest.mark.asyncio
    async def test_summary(self, db_session, create_account):
        account = await create_account(normal="10")

        summary = await AccountService(db_session).get_summary(account.id)

        assert summary["username"] == account.username
        assert summary["balances"]["normal"] == account.normal_balance
        assert summary["active_deposits"] == []


class TestNetworkStats:
    """Downline statistics."""

    @pytest.mark.asyncio
    async def test_stats(self, db_session, chain, create_account):
        root, mid1, _mid2, _leaf = chain
        await create_account(referrer=root)

        stats = await ReferralStatisticsManager(db_session).get_network_stats(root.id)

        assert stats["direct_referrals"] == 2
        assert stats["total_downline"] == 4
        assert stats["downline_by_level"] == {1: 2, 2: 1, 3: 1}

    @pytest.mark.asyncio
    async def test_downline_single_level(self, db_session, chain):
        root, _mid1, mid2, _leaf = chain

        downline = await ReferralStatisticsManager(db_session).get_downline(
            root.id, level=2
        )

        assert [row["account_id"] for row in downline] == [mid2.id]
