"""Meme, comment and vote API endpoints."""

import json

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import String, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from memehub.database import get_db
from memehub.models.meme import Comment, Meme
from memehub.models.vote import VoteDirection
from memehub.schemas.leaderboard import TagCount
from memehub.schemas.meme import (
    CommentCreate,
    CommentResponse,
    MemeCreate,
    MemeCreator,
    MemeListResponse,
    MemeResponse,
    MemeSort,
    MemeWithComments,
    MyVoteResponse,
    VoteResponse,
)
from memehub.services.badges import evaluate_on_comment, evaluate_on_publish, evaluate_quietly
from memehub.services.counters import increment_counters
from memehub.services.image_host import (
    ImageHostClient,
    get_image_host_client,
    resolve_image_url,
)
from memehub.services.leaderboard import TimeFrame, trending_tags, window_start
from memehub.services.votes import apply_vote, get_vote_state
from memehub.utils.security import CurrentUser

router = APIRouter(prefix="/memes", tags=["memes"])


def meme_order(sort: MemeSort) -> tuple:
    """ORDER BY clauses for a meme listing. Ties always fall back to newest first."""
    newest = (Meme.created_at.desc(), Meme.id.desc())
    if sort == MemeSort.TOP:
        return (Meme.upvotes.desc(), *newest)
    return newest


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed to show ``total`` items."""
    return -(-total // page_size)


async def get_meme_or_404(
    db: AsyncSession, meme_id: int, with_comments: bool = False
) -> Meme:
    """Load a meme with its creator (and optionally its comments), or raise 404."""
    options = [selectinload(Meme.creator)]
    if with_comments:
        options.append(selectinload(Meme.comments).selectinload(Comment.user))

    result = await db.execute(
        select(Meme)
        .where(Meme.id == meme_id)
        .options(*options)
        .execution_options(populate_existing=True)
    )
    meme = result.scalar_one_or_none()
    if meme is None:
        raise HTTPException(status_code=404, detail="Meme not found")
    return meme


@router.get("", response_model=MemeListResponse)
async def list_memes(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    sort: MemeSort = Query(MemeSort.NEW, description="Sort order"),
    time_frame: TimeFrame = Query(TimeFrame.ALL, description="Only memes published in this window"),
    tag: str | None = Query(None, min_length=1, description="Only memes carrying this tag"),
    db: AsyncSession = Depends(get_db),
) -> MemeListResponse:
    """List published memes, newest or most upvoted first."""
    filters = []
    start = window_start(time_frame)
    if start is not None:
        filters.append(Meme.created_at >= start)
    if tag:
        # Tags are stored as a JSON array; match the quoted element.
        filters.append(
            cast(Meme.tags, String).contains(json.dumps(tag.strip().lower()), autoescape=True)
        )

    total_result = await db.execute(select(func.count(Meme.id)).where(*filters))
    total = total_result.scalar_one()

    offset = (page - 1) * page_size
    results = await db.execute(
        select(Meme)
        .where(*filters)
        .options(selectinload(Meme.creator))
        .order_by(*meme_order(sort))
        .offset(offset)
        .limit(page_size)
    )
    memes = results.scalars().all()

    return MemeListResponse(
        total=total,
        page=page,
        page_size=page_size,
        total_pages=page_count(total, page_size),
        has_more=total > offset + len(memes),
        results=[MemeResponse.model_validate(meme) for meme in memes],
    )


@router.get("/trending-tags", response_model=list[TagCount])
async def get_trending_tags(
    limit: int = Query(10, ge=1, le=50, description="Number of tags"),
    db: AsyncSession = Depends(get_db),
) -> list[TagCount]:
    """Most used tags across all memes."""
    return await trending_tags(db, limit=limit)


@router.get("/{meme_id}", response_model=MemeWithComments)
async def get_meme(
    meme_id: int,
    db: AsyncSession = Depends(get_db),
) -> MemeWithComments:
    """Get a meme with its comments. Each call counts as one view."""
    if not await increment_counters(db, meme_id, views=1):
        raise HTTPException(status_code=404, detail="Meme not found")

    meme = await get_meme_or_404(db, meme_id, with_comments=True)
    return MemeWithComments.model_validate(meme)


@router.post("", response_model=MemeResponse, status_code=201)
async def publish_meme(
    meme_data: MemeCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    image_host: ImageHostClient | None = Depends(get_image_host_client),
) -> MemeResponse:
    """Publish a new meme.

    The image is uploaded to the image host first; the meme only ever stores
    the resulting URL.

    Raises:
        HTTPException 502: If the image host rejects the upload
    """
    image_url = await resolve_image_url(meme_data.image_data, image_host)

    meme = Meme(
        title=meme_data.title,
        description=meme_data.description,
        image_url=image_url,
        creator_id=current_user.id,
        tags=meme_data.tags,
    )
    db.add(meme)
    await db.flush()

    await evaluate_quietly(evaluate_on_publish, db, current_user.id)

    meme = await get_meme_or_404(db, meme.id)
    return MemeResponse.model_validate(meme)


async def _vote(
    db: AsyncSession, meme_id: int, user_id: int, direction: VoteDirection
) -> VoteResponse:
    await apply_vote(db, meme_id, user_id, direction)
    meme = await get_meme_or_404(db, meme_id)
    return VoteResponse(
        message=f"Meme {direction.value}voted successfully",
        direction=direction,
        meme=MemeResponse.model_validate(meme),
    )


@router.post("/{meme_id}/upvote", response_model=VoteResponse)
async def upvote_meme(
    meme_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> VoteResponse:
    """Upvote a meme, switching away from a downvote if the user holds one.

    Raises:
        HTTPException 400: If the user already upvoted this meme
        HTTPException 404: If the meme doesn't exist
    """
    return await _vote(db, meme_id, current_user.id, VoteDirection.UP)


@router.post("/{meme_id}/downvote", response_model=VoteResponse)
async def downvote_meme(
    meme_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> VoteResponse:
    """Downvote a meme, switching away from an upvote if the user holds one.

    Raises:
        HTTPException 400: If the user already downvoted this meme
        HTTPException 404: If the meme doesn't exist
    """
    return await _vote(db, meme_id, current_user.id, VoteDirection.DOWN)


@router.get("/{meme_id}/my-vote", response_model=MyVoteResponse)
async def get_my_vote(
    meme_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> MyVoteResponse:
    """Get the current user's vote on a meme."""
    if await db.get(Meme, meme_id) is None:
        raise HTTPException(status_code=404, detail="Meme not found")

    direction = await get_vote_state(db, meme_id, current_user.id)
    return MyVoteResponse(meme_id=meme_id, direction=direction)


@router.post("/{meme_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    meme_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """Comment on a meme.

    Raises:
        HTTPException 404: If the meme doesn't exist
        HTTPException 422: If the text is empty or longer than 140 characters
    """
    meme = await db.get(Meme, meme_id)
    if meme is None:
        raise HTTPException(status_code=404, detail="Meme not found")

    comment = Comment(meme_id=meme_id, user_id=current_user.id, text=comment_data.text)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)

    await evaluate_quietly(evaluate_on_comment, db, meme.creator_id)

    return CommentResponse(
        id=comment.id,
        meme_id=comment.meme_id,
        user=MemeCreator.model_validate(current_user),
        text=comment.text,
        created_at=comment.created_at,
    )


@router.delete("/{meme_id}", status_code=204)
async def delete_meme(
    meme_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    image_host: ImageHostClient | None = Depends(get_image_host_client),
) -> None:
    """Delete one of your own memes, together with its comments, votes and image.

    Raises:
        HTTPException 403: If the meme belongs to someone else
        HTTPException 404: If the meme doesn't exist
    """
    result = await db.execute(
        select(Meme)
        .where(Meme.id == meme_id)
        .options(selectinload(Meme.comments), selectinload(Meme.votes))
    )
    meme = result.scalar_one_or_none()
    if meme is None:
        raise HTTPException(status_code=404, detail="Meme not found")

    if meme.creator_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to delete this meme")

    if image_host is not None and image_host.owns(meme.image_url):
        await image_host.destroy(meme.image_url)

    await db.delete(meme)
    await db.flush()
