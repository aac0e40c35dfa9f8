"""Leaderboard and creator statistics aggregation.

Leaderboards are computed from the meme table on every request; nothing is
cached or maintained incrementally.
"""

import logging
from datetime import datetime, timedelta
from enum import StrEnum

from sqlalchemy import Select, String, column, func, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from memehub.database import utcnow
from memehub.models.meme import Comment, Meme
from memehub.models.user import User
from memehub.schemas.leaderboard import (
    CreatorStats,
    CreatorStatsSummary,
    LeaderboardEntry,
    TagCount,
    TimelinePoint,
)
from memehub.schemas.meme import MemeResponse
from memehub.services.badges import evaluate_quietly, evaluate_weekly_winner
from memehub.services.errors import AggregationError, NotFoundError

logger = logging.getLogger(__name__)


class TimeFrame(StrEnum):
    """Time windows a leaderboard can cover."""

    DAY = "24h"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


WINDOWS: dict[TimeFrame, timedelta] = {
    TimeFrame.DAY: timedelta(hours=24),
    TimeFrame.WEEK: timedelta(days=7),
    TimeFrame.MONTH: timedelta(days=30),
}


def window_start(time_frame: TimeFrame, now: datetime | None = None) -> datetime | None:
    """Earliest creation time included in the window, or None for ``all``."""
    window = WINDOWS.get(TimeFrame(time_frame))
    if window is None:
        return None
    return (now or utcnow()) - window


def _comment_counts():
    """Per-meme comment counts, to be outer-joined onto memes."""
    return (
        select(Comment.meme_id, func.count(Comment.id).label("comment_count"))
        .group_by(Comment.meme_id)
        .subquery()
    )


def _creator_totals_query() -> Select:
    comment_counts = _comment_counts()
    return (
        select(
            Meme.creator_id,
            func.count(Meme.id).label("total_memes"),
            func.sum(Meme.upvotes).label("total_upvotes"),
            func.sum(Meme.downvotes).label("total_downvotes"),
            func.sum(Meme.score).label("total_score"),
            func.sum(Meme.views).label("total_views"),
            func.coalesce(func.sum(comment_counts.c.comment_count), 0).label("total_comments"),
        )
        .select_from(Meme)
        .outerjoin(comment_counts, comment_counts.c.meme_id == Meme.id)
        .group_by(Meme.creator_id)
    )


async def _load_creators(db: AsyncSession, user_ids: list[int]) -> dict[int, User]:
    if not user_ids:
        return {}
    result = await db.execute(
        select(User)
        .where(User.id.in_(user_ids))
        .options(selectinload(User.badges))
        .execution_options(populate_existing=True)
    )
    return {user.id: user for user in result.scalars().all()}


async def compute_leaderboard(
    db: AsyncSession,
    time_frame: TimeFrame = TimeFrame.WEEK,
    limit: int = 10,
    now: datetime | None = None,
) -> list[LeaderboardEntry]:
    """Rank creators by the memes they published within a time window.

    Creators are ordered by total score, then total upvotes, then user id
    (ascending) so equal totals always come back in the same order. Creators
    without memes in the window do not appear.

    Computing the ``week`` leaderboard grants ``weekly_winner`` to the creator
    in first place. The returned entries show badges as they were before that
    grant, and a failed grant does not affect the result.

    Raises:
        ValueError: If limit is not positive.
        AggregationError: If the store fails to aggregate.
    """
    time_frame = TimeFrame(time_frame)
    if limit < 1:
        raise ValueError("limit must be a positive integer")

    query = _creator_totals_query()
    start = window_start(time_frame, now)
    if start is not None:
        query = query.where(Meme.created_at >= start)
    query = query.order_by(
        func.sum(Meme.score).desc(),
        func.sum(Meme.upvotes).desc(),
        Meme.creator_id.asc(),
    ).limit(limit)

    try:
        rows = (await db.execute(query)).all()
        creators = await _load_creators(db, [row.creator_id for row in rows])
    except SQLAlchemyError as e:
        logger.exception("Leaderboard aggregation failed (time_frame=%s)", time_frame)
        raise AggregationError("Could not compute leaderboard, please try again") from e

    entries: list[LeaderboardEntry] = []
    for row in rows:
        creator = creators.get(row.creator_id)
        if creator is None:
            continue
        entries.append(
            LeaderboardEntry(
                rank=len(entries) + 1,
                user_id=creator.id,
                username=creator.username,
                profile_picture=creator.profile_picture,
                badges=[held.badge for held in creator.badges],
                total_memes=row.total_memes,
                total_upvotes=row.total_upvotes,
                total_downvotes=row.total_downvotes,
                total_score=row.total_score,
                total_views=row.total_views,
                total_comments=row.total_comments,
            )
        )

    if time_frame is TimeFrame.WEEK and entries:
        granted = await evaluate_quietly(evaluate_weekly_winner, db, entries[0].user_id)
        if granted:
            logger.info("User %s is this week's top creator", entries[0].user_id)

    return entries


async def creator_stats(db: AsyncSession, user_id: int) -> CreatorStats:
    """All-time totals, top meme and daily timeline for one creator.

    Raises:
        NotFoundError: If the user does not exist.
        AggregationError: If the store fails to aggregate.
    """
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    day = func.date(Meme.created_at).label("day")
    totals_query = _creator_totals_query().add_columns(
        func.avg(Meme.score).label("average_score")
    ).where(Meme.creator_id == user_id)
    timeline_query = (
        select(
            day,
            func.count(Meme.id).label("count"),
            func.sum(Meme.upvotes).label("upvotes"),
            func.sum(Meme.views).label("views"),
        )
        .where(Meme.creator_id == user_id)
        .group_by(day)
        .order_by(day)
    )
    top_meme_query = (
        select(Meme)
        .where(Meme.creator_id == user_id)
        .options(selectinload(Meme.creator))
        .order_by(Meme.upvotes.desc(), Meme.created_at.desc(), Meme.id.desc())
        .limit(1)
    )

    try:
        totals = (await db.execute(totals_query)).one_or_none()
        timeline = (await db.execute(timeline_query)).all()
        top_meme = (await db.execute(top_meme_query)).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception("Creator stats aggregation failed for user %s", user_id)
        raise AggregationError("Could not compute creator statistics, please try again") from e

    summary = CreatorStatsSummary()
    if totals is not None:
        summary = CreatorStatsSummary(
            total_memes=totals.total_memes,
            total_upvotes=totals.total_upvotes,
            total_downvotes=totals.total_downvotes,
            total_score=totals.total_score,
            total_views=totals.total_views,
            total_comments=totals.total_comments,
            average_score=round(float(totals.average_score), 2),
        )

    return CreatorStats(
        stats=summary,
        top_meme=MemeResponse.model_validate(top_meme) if top_meme else None,
        timeline=[
            TimelinePoint(
                date=str(point.day), count=point.count, upvotes=point.upvotes, views=point.views
            )
            for point in timeline
        ],
    )


async def trending_tags(db: AsyncSession, limit: int = 10) -> list[TagCount]:
    """Most used tags across all memes, most frequent first (ties by tag).

    Tag arrays are expanded and counted in the database with ``json_each``.
    """
    tag = func.json_each(Meme.tags).table_valued(column("value", String)).alias("tag")
    uses = func.count().label("uses")
    query = (
        select(tag.c.value, uses)
        .select_from(Meme)
        .join(tag, true())
        .group_by(tag.c.value)
        .order_by(uses.desc(), tag.c.value)
        .limit(limit)
    )

    try:
        rows = (await db.execute(query)).all()
    except SQLAlchemyError as e:
        logger.exception("Trending tag aggregation failed")
        raise AggregationError("Could not compute trending tags, please try again") from e

    return [TagCount(tag=row.value, count=row.uses) for row in rows]
