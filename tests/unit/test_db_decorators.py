"""
Tests for the unit-of-work decorators.
"""

import pytest

from app.utils.db_decorators import with_auto_commit


class _Service:
    def __init__(self, session):
        self.session = session

    @with_auto_commit
    async def succeed(self):
        return "done"

    @with_auto_commit
    async def fail(self):
        raise ValueError("bad input")


class TestWithAutoCommit:
    """Commit on success, rollback on error."""

    @pytest.mark.asyncio
    async def test_commits(self, mock_session):
        assert await _Service(mock_session).succeed() == "done"
        mock_session.commit.assert_awaited_once()
        mock_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self, mock_session):
        with pytest.raises(ValueError):
            await _Service(mock_session).fail()
        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_session_keyword(self, mock_session):
        @with_auto_commit
        async def operation(session=None):
            return 1

        assert await operation(session=mock_session) == 1
        mock_session.commit.assert_awaited_once()
