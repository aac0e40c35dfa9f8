"""Business logic: vote ledger, badges, leaderboards and the image host and proxy clients."""

from memehub.services.badges import (
    evaluate_on_comment,
    evaluate_on_publish,
    evaluate_on_upvote,
    evaluate_quietly,
    evaluate_weekly_winner,
    get_badges,
    grant_badge,
)
from memehub.services.errors import (
    AggregationError,
    APIError,
    DuplicateVoteError,
    NotFoundError,
    RateLimitError,
    ServiceError,
    UnauthorizedError,
)
from memehub.services.image_host import ImageHostClient, get_image_host_client
from memehub.services.image_proxy import ImageProxyClient, get_image_proxy_client
from memehub.services.leaderboard import (
    TimeFrame,
    compute_leaderboard,
    creator_stats,
    trending_tags,
)
from memehub.services.votes import apply_vote, get_vote_state, get_voted_meme_ids

__all__ = [
    "APIError",
    "AggregationError",
    "DuplicateVoteError",
    "NotFoundError",
    "RateLimitError",
    "ServiceError",
    "UnauthorizedError",
    "ImageHostClient",
    "get_image_host_client",
    "ImageProxyClient",
    "get_image_proxy_client",
    "apply_vote",
    "get_vote_state",
    "get_voted_meme_ids",
    "grant_badge",
    "get_badges",
    "evaluate_on_publish",
    "evaluate_on_upvote",
    "evaluate_on_comment",
    "evaluate_weekly_winner",
    "evaluate_quietly",
    "TimeFrame",
    "compute_leaderboard",
    "creator_stats",
    "trending_tags",
]
