"""Badge evaluation.

Badges are granted once and never revoked. Each ``evaluate_*`` function checks
one threshold after the event that may have crossed it and returns the badges
it newly granted. Trigger sites run them through ``evaluate_quietly`` so that
a failing evaluation never fails the publish, vote or comment that caused it.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memehub.models.meme import Comment, Meme
from memehub.models.user import Badge, User, UserBadge
from memehub.services.errors import NotFoundError

logger = logging.getLogger(__name__)

FIRST_UPLOAD_COUNT = 1
PROLIFIC_CREATOR_COUNT = 10
VIRAL_POST_UPVOTES = 100
COMMENT_KING_COMMENTS = 50

Evaluation = Callable[..., Awaitable[list[Badge]]]


async def get_badges(db: AsyncSession, user_id: int) -> list[Badge]:
    """Return the badges a user holds, in the order they were awarded."""
    result = await db.execute(
        select(UserBadge.badge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.awarded_at, UserBadge.badge)
    )
    return list(result.scalars().all())


async def grant_badge(db: AsyncSession, user_id: int, badge: Badge) -> bool:
    """Grant a badge unless the user already holds it.

    Returns:
        True if the badge was newly granted, False if it was already held.

    Raises:
        NotFoundError: If the user does not exist.
    """
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    held = await db.execute(
        select(UserBadge.badge).where(UserBadge.user_id == user_id, UserBadge.badge == badge)
    )
    if held.scalar_one_or_none() is not None:
        return False

    # A concurrent grant may land between the check and the insert.
    try:
        async with db.begin_nested():
            db.add(UserBadge(user_id=user_id, badge=badge))
    except IntegrityError:
        return False

    logger.info("Granted badge %s to user %s", badge, user_id)
    return True


async def _grant(db: AsyncSession, user_id: int, *badges: Badge) -> list[Badge]:
    return [badge for badge in badges if await grant_badge(db, user_id, badge)]


async def evaluate_on_publish(db: AsyncSession, creator_id: int) -> list[Badge]:
    """Grant upload badges based on how many memes the creator has published."""
    result = await db.execute(select(func.count(Meme.id)).where(Meme.creator_id == creator_id))
    meme_count = result.scalar_one()

    qualifying = []
    if meme_count == FIRST_UPLOAD_COUNT:
        qualifying.append(Badge.FIRST_UPLOAD)
    if meme_count >= PROLIFIC_CREATOR_COUNT:
        qualifying.append(Badge.PROLIFIC_CREATOR)
    return await _grant(db, creator_id, *qualifying)


async def evaluate_on_upvote(db: AsyncSession, meme_id: int) -> list[Badge]:
    """Grant ``viral_post`` to the creator once the meme reaches the upvote threshold."""
    result = await db.execute(select(Meme.creator_id, Meme.upvotes).where(Meme.id == meme_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Meme not found")

    if row.upvotes < VIRAL_POST_UPVOTES:
        return []
    return await _grant(db, row.creator_id, Badge.VIRAL_POST)


async def evaluate_on_comment(db: AsyncSession, creator_id: int) -> list[Badge]:
    """Grant ``comment_king`` once the creator's memes have gathered enough comments."""
    result = await db.execute(
        select(func.count(Comment.id))
        .join(Meme, Comment.meme_id == Meme.id)
        .where(Meme.creator_id == creator_id)
    )
    if result.scalar_one() < COMMENT_KING_COMMENTS:
        return []
    return await _grant(db, creator_id, Badge.COMMENT_KING)


async def evaluate_weekly_winner(db: AsyncSession, top_creator_id: int) -> list[Badge]:
    """Grant ``weekly_winner`` to the top creator of the weekly leaderboard.

    Earlier winners keep the badge; it accumulates holders week after week.
    """
    return await _grant(db, top_creator_id, Badge.WEEKLY_WINNER)


async def evaluate_quietly(evaluation: Evaluation, db: AsyncSession, *args: Any) -> list[Badge]:
    """Run a badge evaluation without letting it fail the caller.

    The evaluation runs inside a savepoint. On failure the savepoint is rolled
    back, the error is logged and no badges are reported.
    """
    try:
        async with db.begin_nested():
            return await evaluation(db, *args)
    except Exception:
        logger.exception("Badge evaluation %s%r failed", evaluation.__name__, args)
        return []
