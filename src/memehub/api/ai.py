"""Caption and tag suggestions and the image proxy used by the meme editor."""

import logging
import random

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from memehub.schemas.ai import CaptionRequest, CaptionSuggestions, TagSuggestions
from memehub.services.errors import APIError
from memehub.services.image_proxy import ImageProxyClient, get_image_proxy_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])

CAPTIONS = (
    "When you try to act normal but your brain says 'error 404'.",
    "Me: I will sleep early today. Also me at 3AM: one more meme.",
    "When you open the fridge for the 10th time hoping new food appears.",
    "My last 2 brain cells trying to work on Monday morning.",
    "When you accidentally open front camera and instantly regret life.",
    "That moment you realize the 'group study' is just chitchat.",
    "Me pretending to understand what's happening in class.",
    "When you charge your phone for 5 minutes and expect 100%.",
    "When your mom says 'we need to talk'.",
    "When you're hungry but too lazy to cook.",
    "Me after doing 1 productive thing: I deserve a vacation.",
    "When WiFi stops working and your whole life falls apart.",
    "When you tell a joke and even you regret it instantly.",
    "Trying to act cool when the teacher calls your name.",
    "When you clean your room and can't find anything anymore.",
    "Me watching my clothes wash like it's a Netflix show.",
    "When autocorrect makes you look stupid.",
    "When your crush says 'bro'.",
    "That awkward moment when someone waves... but not at you.",
    "When you click 'add to cart' knowing damn well you won't buy it.",
)
CAPTION_SUGGESTION_COUNT = 3

SUGGESTED_TAGS = ["funny", "relatable", "lol", "meme", "daily"]


@router.post("/generate-caption", response_model=CaptionSuggestions)
async def generate_caption(
    body: CaptionRequest | None = None,  # noqa: ARG001
) -> CaptionSuggestions:
    """Suggest captions for a meme.

    The image is accepted but not inspected; suggestions are drawn at random
    from a fixed set.
    """
    return CaptionSuggestions(captions=random.sample(CAPTIONS, CAPTION_SUGGESTION_COUNT))


@router.post("/generate-tags", response_model=TagSuggestions)
async def generate_tags() -> TagSuggestions:
    """Suggest tags for a meme."""
    return TagSuggestions(tags=list(SUGGESTED_TAGS))


@router.get("/proxy-image")
async def proxy_image(
    url: str | None = Query(None, description="Absolute http(s) URL of the image"),
    client: ImageProxyClient = Depends(get_image_proxy_client),
) -> Response:
    """Fetch a remote image and return it with its original content type.

    Raises:
        HTTPException 400: If the URL is missing or not an http(s) URL
        HTTPException 502: If the image could not be loaded
    """
    if not url:
        raise HTTPException(status_code=400, detail="URL missing")

    try:
        content, content_type = await client.fetch(url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid image URL") from e
    except APIError as e:
        logger.warning("Image proxy failed for %s: %s", url, e)
        raise HTTPException(status_code=502, detail="Failed to load image") from e

    return Response(content=content, media_type=content_type)
