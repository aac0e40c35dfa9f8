"""Vote ledger.

Each (user, meme) pair is in one of three states: no vote, up or down. The
``meme_votes`` row is the ledger entry and the meme's ``upvotes`` /
``downvotes`` counters mirror the number of entries in each direction.

Allowed transitions:

    none -> up      upvotes + 1
    none -> down    downvotes + 1
    up   -> down    upvotes - 1, downvotes + 1
    down -> up      downvotes - 1, upvotes + 1

Repeating the current direction is rejected with ``DuplicateVoteError``.
Votes cannot be retracted.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memehub.database import utcnow
from memehub.models.meme import Meme
from memehub.models.user import User
from memehub.models.vote import MemeVote, VoteDirection
from memehub.services.badges import evaluate_on_upvote, evaluate_quietly
from memehub.services.counters import increment_counters
from memehub.services.errors import DuplicateVoteError, NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)


def _duplicate(direction: VoteDirection) -> DuplicateVoteError:
    return DuplicateVoteError(f"Already {direction.value}voted this meme")


async def get_vote_state(db: AsyncSession, meme_id: int, user_id: int) -> VoteDirection | None:
    """Return the user's current vote on a meme, or None if they have not voted."""
    result = await db.execute(
        select(MemeVote.direction).where(MemeVote.user_id == user_id, MemeVote.meme_id == meme_id)
    )
    return result.scalar_one_or_none()


async def get_voted_meme_ids(db: AsyncSession, user_id: int) -> dict[VoteDirection, list[int]]:
    """Ids of the memes a user currently upvotes and downvotes, oldest vote first."""
    result = await db.execute(
        select(MemeVote.direction, MemeVote.meme_id)
        .where(MemeVote.user_id == user_id)
        .order_by(MemeVote.voted_at, MemeVote.meme_id)
    )
    voted: dict[VoteDirection, list[int]] = {direction: [] for direction in VoteDirection}
    for direction, meme_id in result.all():
        voted[direction].append(meme_id)
    return voted


async def _cast_first_vote(
    db: AsyncSession, meme_id: int, user_id: int, direction: VoteDirection
) -> None:
    # The (user_id, meme_id) primary key rejects a concurrent first vote that
    # passed the state check at the same time as this one.
    try:
        async with db.begin_nested():
            db.add(MemeVote(user_id=user_id, meme_id=meme_id, direction=direction))
    except IntegrityError as e:
        raise _duplicate(direction) from e


async def _switch_vote(
    db: AsyncSession,
    meme_id: int,
    user_id: int,
    current: VoteDirection,
    direction: VoteDirection,
) -> None:
    # Compare-and-set: only flips the row if it still holds the direction we read.
    result = await db.execute(
        update(MemeVote)
        .where(
            MemeVote.user_id == user_id,
            MemeVote.meme_id == meme_id,
            MemeVote.direction == current,
        )
        .values(direction=direction, voted_at=utcnow())
    )
    if result.rowcount != 1:
        raise _duplicate(direction)


async def apply_vote(
    db: AsyncSession,
    meme_id: int,
    user_id: int | None,
    direction: VoteDirection,
) -> Meme:
    """Record a user's vote on a meme and update the meme's counters.

    Args:
        db: Database session.
        meme_id: Meme being voted on.
        user_id: Verified id of the voting user.
        direction: Requested vote direction.

    Returns:
        The meme with refreshed counters.

    Raises:
        UnauthorizedError: If no user id is given.
        NotFoundError: If the user or the meme does not exist.
        DuplicateVoteError: If the user already holds a vote in this direction.
    """
    if user_id is None:
        raise UnauthorizedError("Authentication required to vote")

    direction = VoteDirection(direction)

    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    meme = await db.get(Meme, meme_id)
    if meme is None:
        raise NotFoundError("Meme not found")

    current = await get_vote_state(db, meme_id, user_id)
    if current == direction:
        raise _duplicate(direction)

    if current is None:
        await _cast_first_vote(db, meme_id, user_id, direction)
        deltas = {direction.counter: 1}
    else:
        await _switch_vote(db, meme_id, user_id, current, direction)
        deltas = {direction.counter: 1, current.counter: -1}

    await increment_counters(db, meme_id, **deltas)
    await db.refresh(meme)
    logger.debug("User %s voted %s on meme %s (was %s)", user_id, direction, meme_id, current)

    if direction == VoteDirection.UP:
        await evaluate_quietly(evaluate_on_upvote, db, meme_id)

    return meme
