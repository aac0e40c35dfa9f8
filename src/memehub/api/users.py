"""User profile, statistics and leaderboard API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from memehub.api.memes import meme_order, page_count
from memehub.config import get_settings
from memehub.database import get_db
from memehub.models.meme import Meme
from memehub.models.user import Badge, User
from memehub.models.vote import VoteDirection
from memehub.schemas.leaderboard import CreatorStats, LeaderboardEntry
from memehub.schemas.meme import MemeListResponse, MemeResponse, MemeSort
from memehub.schemas.user import PublicUserResponse, UserResponse, UserUpdate
from memehub.services.badges import get_badges
from memehub.services.leaderboard import TimeFrame, compute_leaderboard, creator_stats
from memehub.services.votes import get_voted_meme_ids
from memehub.utils.security import CurrentUser

router = APIRouter(prefix="/users", tags=["users"])


def user_to_response(
    user: User,
    badges: list[Badge],
    voted: dict[VoteDirection, list[int]] | None = None,
) -> UserResponse:
    """Convert a User model to UserResponse schema.

    Badges and votes are passed in because the relationships are not loaded on
    users obtained from the auth dependency.
    """
    voted = voted or {}
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        profile_picture=user.profile_picture,
        bio=user.bio,
        badges=badges,
        is_active=user.is_active,
        created_at=user.created_at,
        upvoted_meme_ids=voted.get(VoteDirection.UP, []),
        downvoted_meme_ids=voted.get(VoteDirection.DOWN, []),
    )


async def own_profile(db: AsyncSession, user: User) -> UserResponse:
    """The signed-in user's own profile, with badges and current votes."""
    return user_to_response(
        user,
        badges=await get_badges(db, user.id),
        voted=await get_voted_meme_ids(db, user.id),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Get the current user's full profile, including badges."""
    return await own_profile(db, current_user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    current_user: CurrentUser,
    user_data: UserUpdate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Update the current user's username, bio or profile picture.

    Raises:
        HTTPException 409: If the new username is taken by someone else
    """
    if user_data.username is not None and user_data.username != current_user.username:
        taken = await db.execute(
            select(User.id).where(User.username == user_data.username, User.id != current_user.id)
        )
        if taken.scalar_one_or_none() is not None:
            raise HTTPException(status_code=409, detail="Username already taken")
        current_user.username = user_data.username

    if user_data.bio is not None:
        current_user.bio = user_data.bio
    if user_data.profile_picture is not None:
        current_user.profile_picture = user_data.profile_picture

    await db.flush()
    await db.refresh(current_user)

    return await own_profile(db, current_user)


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    time_frame: TimeFrame = Query(TimeFrame.WEEK, description="Time window"),
    limit: int | None = Query(None, ge=1, le=100, description="Number of creators"),
    db: AsyncSession = Depends(get_db),
) -> list[LeaderboardEntry]:
    """Rank creators by the score of the memes they published in a time window.

    Computing the weekly leaderboard awards the weekly winner badge to the
    creator in first place.
    """
    return await compute_leaderboard(
        db,
        time_frame=time_frame,
        limit=limit or get_settings().leaderboard_default_limit,
    )


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
) -> PublicUserResponse:
    """Get a user's public profile."""
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    return PublicUserResponse(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_picture,
        bio=user.bio,
        badges=await get_badges(db, user.id),
        created_at=user.created_at,
    )


@router.get("/{user_id}/stats", response_model=CreatorStats)
async def get_user_stats(
    user_id: int,
    db: AsyncSession = Depends(get_db),
) -> CreatorStats:
    """Get a creator's all-time totals, top meme and daily timeline."""
    return await creator_stats(db, user_id)


@router.get("/{user_id}/memes", response_model=MemeListResponse)
async def list_user_memes(
    user_id: int,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    sort: MemeSort = Query(MemeSort.NEW, description="Sort order"),
    db: AsyncSession = Depends(get_db),
) -> MemeListResponse:
    """List the memes a user has published."""
    if await db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    total_result = await db.execute(
        select(func.count(Meme.id)).where(Meme.creator_id == user_id)
    )
    total = total_result.scalar_one()

    offset = (page - 1) * page_size
    results = await db.execute(
        select(Meme)
        .where(Meme.creator_id == user_id)
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
