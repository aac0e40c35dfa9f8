"""Tests for the vote ledger."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from memehub.models.user import Badge
from memehub.models.vote import MemeVote, VoteDirection
from memehub.services.badges import VIRAL_POST_UPVOTES, get_badges
from memehub.services.errors import DuplicateVoteError, NotFoundError, UnauthorizedError
from memehub.services.votes import apply_vote, get_vote_state, get_voted_meme_ids


async def count_votes(db_session, meme_id: int, direction: VoteDirection) -> int:
    result = await db_session.execute(
        select(func.count()).where(MemeVote.meme_id == meme_id, MemeVote.direction == direction)
    )
    return result.scalar_one()


class TestApplyVote:
    """Tests for recording and switching votes."""

    async def test_first_upvote(self, db_session, make_user, make_meme) -> None:
        """Test that a first upvote increments upvotes only."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator)

        result = await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)

        assert result.upvotes == 1
        assert result.downvotes == 0
        assert result.score == 1
        assert await get_vote_state(db_session, meme.id, voter.id) == VoteDirection.UP

    async def test_first_downvote(self, db_session, make_user, make_meme) -> None:
        """Test that a first downvote increments downvotes only."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator)

        result = await apply_vote(db_session, meme.id, voter.id, VoteDirection.DOWN)

        assert result.upvotes == 0
        assert result.downvotes == 1
        assert result.score == -1

    async def test_direction_given_as_string(self, db_session, make_user, make_meme) -> None:
        """Test that plain "up"/"down" strings are accepted."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator)

        result = await apply_vote(db_session, meme.id, voter.id, "down")

        assert result.downvotes == 1

    async def test_switch_up_to_down(self, db_session, make_user, make_meme) -> None:
        """Test that switching moves the vote between counters."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator)

        await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)
        result = await apply_vote(db_session, meme.id, voter.id, VoteDirection.DOWN)

        assert result.upvotes == 0
        assert result.downvotes == 1
        assert await get_vote_state(db_session, meme.id, voter.id) == VoteDirection.DOWN

    async def test_switch_down_to_up(self, db_session, make_user, make_meme) -> None:
        """Test switching from a downvote back to an upvote."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator)

        await apply_vote(db_session, meme.id, voter.id, VoteDirection.DOWN)
        result = await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)

        assert result.upvotes == 1
        assert result.downvotes == 0

    @pytest.mark.parametrize("direction", [VoteDirection.UP, VoteDirection.DOWN])
    async def test_repeat_vote_rejected(
        self, db_session, make_user, make_meme, direction: VoteDirection
    ) -> None:
        """Test that repeating a vote is rejected and leaves counters unchanged."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator)
        await apply_vote(db_session, meme.id, voter.id, direction)

        with pytest.raises(DuplicateVoteError) as exc_info:
            await apply_vote(db_session, meme.id, voter.id, direction)

        assert str(exc_info.value) == f"Already {direction.value}voted this meme"
        assert exc_info.value.status_code == 400
        await db_session.refresh(meme)
        assert (meme.upvotes, meme.downvotes) == (
            (1, 0) if direction == VoteDirection.UP else (0, 1)
        )

    async def test_two_users_then_switch(self, db_session, make_user, make_meme) -> None:
        """Test A upvotes, B downvotes, then A switches to a downvote."""
        creator = await make_user(db_session, "creator")
        user_a = await make_user(db_session, "usera")
        user_b = await make_user(db_session, "userb")
        meme = await make_meme(db_session, creator)

        result = await apply_vote(db_session, meme.id, user_a.id, VoteDirection.UP)
        assert (result.upvotes, result.downvotes) == (1, 0)

        result = await apply_vote(db_session, meme.id, user_b.id, VoteDirection.DOWN)
        assert (result.upvotes, result.downvotes) == (1, 1)

        result = await apply_vote(db_session, meme.id, user_a.id, VoteDirection.DOWN)
        assert (result.upvotes, result.downvotes) == (0, 2)

    async def test_counters_mirror_ledger(self, db_session, make_user, make_meme) -> None:
        """Test that counters always equal the number of ledger entries per direction."""
        creator = await make_user(db_session, "creator")
        meme = await make_meme(db_session, creator)
        voters = [await make_user(db_session, f"voter{i}") for i in range(4)]

        await apply_vote(db_session, meme.id, voters[0].id, VoteDirection.UP)
        await apply_vote(db_session, meme.id, voters[1].id, VoteDirection.UP)
        await apply_vote(db_session, meme.id, voters[2].id, VoteDirection.DOWN)
        await apply_vote(db_session, meme.id, voters[3].id, VoteDirection.DOWN)
        await apply_vote(db_session, meme.id, voters[1].id, VoteDirection.DOWN)
        result = await apply_vote(db_session, meme.id, voters[2].id, VoteDirection.UP)

        assert result.upvotes == await count_votes(db_session, meme.id, VoteDirection.UP) == 2
        assert result.downvotes == await count_votes(db_session, meme.id, VoteDirection.DOWN) == 2

    async def test_anonymous_vote_rejected(self, db_session, make_user, make_meme) -> None:
        """Test that a vote without a user id is rejected."""
        creator = await make_user(db_session, "creator")
        meme = await make_meme(db_session, creator)

        with pytest.raises(UnauthorizedError):
            await apply_vote(db_session, meme.id, None, VoteDirection.UP)

    async def test_unknown_meme(self, db_session, make_user) -> None:
        """Test voting on a meme that does not exist."""
        voter = await make_user(db_session, "voter")

        with pytest.raises(NotFoundError, match="Meme not found"):
            await apply_vote(db_session, 9999, voter.id, VoteDirection.UP)

    async def test_unknown_user(self, db_session, make_user, make_meme) -> None:
        """Test voting as a user that does not exist."""
        creator = await make_user(db_session, "creator")
        meme = await make_meme(db_session, creator)

        with pytest.raises(NotFoundError, match="User not found"):
            await apply_vote(db_session, meme.id, 9999, VoteDirection.UP)

    async def test_concurrent_first_vote_rejected(
        self, session_factory, db_session, make_user, make_meme
    ) -> None:
        """Test that a first vote losing the race to an identical one is rejected."""
        async with session_factory() as setup:
            creator = await make_user(setup, "creator")
            voter = await make_user(setup, "voter")
            meme = await make_meme(setup, creator, upvotes=1)
            setup.add(MemeVote(user_id=voter.id, meme_id=meme.id, direction=VoteDirection.UP))
            await setup.commit()

        # Both requests saw "no vote yet" before either wrote.
        with patch("memehub.services.votes.get_vote_state", AsyncMock(return_value=None)):
            with pytest.raises(DuplicateVoteError):
                await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)

        assert await count_votes(db_session, meme.id, VoteDirection.UP) == 1

    async def test_concurrent_switch_rejected(
        self, session_factory, db_session, make_user, make_meme
    ) -> None:
        """Test that a switch based on a stale read of the vote is rejected."""
        async with session_factory() as setup:
            creator = await make_user(setup, "creator")
            voter = await make_user(setup, "voter")
            meme = await make_meme(setup, creator, upvotes=1)
            setup.add(MemeVote(user_id=voter.id, meme_id=meme.id, direction=VoteDirection.UP))
            await setup.commit()

        # A concurrent request already switched the vote to up; this one still reads down.
        stale = AsyncMock(return_value=VoteDirection.DOWN)
        with patch("memehub.services.votes.get_vote_state", stale):
            with pytest.raises(DuplicateVoteError):
                await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)


class TestGetVotedMemeIds:
    """Tests for listing the memes a user has voted on."""

    async def test_no_votes(self, db_session, make_user) -> None:
        """Test a user who has not voted yet."""
        voter = await make_user(db_session, "voter")

        assert await get_voted_meme_ids(db_session, voter.id) == {
            VoteDirection.UP: [],
            VoteDirection.DOWN: [],
        }

    async def test_follows_switches(self, db_session, make_user, make_meme) -> None:
        """Test that a switched vote moves the meme to the other list."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        other = await make_user(db_session, "other")
        first = await make_meme(db_session, creator, title="First")
        second = await make_meme(db_session, creator, title="Second")
        third = await make_meme(db_session, creator, title="Third")

        await apply_vote(db_session, first.id, voter.id, VoteDirection.UP)
        await apply_vote(db_session, second.id, voter.id, VoteDirection.UP)
        await apply_vote(db_session, third.id, other.id, VoteDirection.DOWN)
        await apply_vote(db_session, first.id, voter.id, VoteDirection.DOWN)

        voted = await get_voted_meme_ids(db_session, voter.id)

        assert voted[VoteDirection.UP] == [second.id]
        assert voted[VoteDirection.DOWN] == [first.id]


class TestVoteBadges:
    """Tests for badges awarded through votes."""

    async def test_viral_post_on_threshold(self, db_session, make_user, make_meme) -> None:
        """Test that the upvote reaching the threshold grants viral_post to the creator."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator, upvotes=VIRAL_POST_UPVOTES - 1)

        await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)

        assert await get_badges(db_session, creator.id) == [Badge.VIRAL_POST]
        assert await get_badges(db_session, voter.id) == []

    async def test_downvote_does_not_evaluate(self, db_session, make_user, make_meme) -> None:
        """Test that downvotes never grant viral_post."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator, upvotes=VIRAL_POST_UPVOTES)

        await apply_vote(db_session, meme.id, voter.id, VoteDirection.DOWN)

        assert await get_badges(db_session, creator.id) == []

    async def test_badge_failure_does_not_fail_vote(
        self, db_session, make_user, make_meme
    ) -> None:
        """Test that a failing badge evaluation leaves the vote recorded."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator, upvotes=VIRAL_POST_UPVOTES - 1)

        failing = AsyncMock(side_effect=NotFoundError("User not found"))
        with patch("memehub.services.badges.grant_badge", failing):
            result = await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)

        assert result.upvotes == VIRAL_POST_UPVOTES
        assert await get_vote_state(db_session, meme.id, voter.id) == VoteDirection.UP

    async def test_unexpected_badge_error_does_not_fail_vote(
        self, db_session, make_user, make_meme
    ) -> None:
        """Test that an error of any kind during badge evaluation leaves the vote recorded."""
        creator = await make_user(db_session, "creator")
        voter = await make_user(db_session, "voter")
        meme = await make_meme(db_session, creator, upvotes=VIRAL_POST_UPVOTES - 1)

        failing = AsyncMock(side_effect=RuntimeError("creator lookup failed"))
        with patch("memehub.services.badges.grant_badge", failing):
            result = await apply_vote(db_session, meme.id, voter.id, VoteDirection.UP)

        assert result.upvotes == VIRAL_POST_UPVOTES
        assert await get_vote_state(db_session, meme.id, voter.id) == VoteDirection.UP
        assert await get_badges(db_session, creator.id) == []
