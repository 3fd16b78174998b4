"""Random image delivery: streams the bytes of a randomly chosen image."""

import logging

from fastapi import APIRouter, Query
from starlette.responses import StreamingResponse

from rangpic.core.dependencies import ImageDeliveryDep, ImageRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["delivery"])

# Mounted at the site root rather than under /api
ROUTER_CONFIG = {"prefix": ""}


@router.get(
    "/random-image",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"image/*": {}}, "description": "Image bytes"},
        404: {"description": "No image matches the tag"},
        500: {"description": "Catalog, local file or origin failure"},
        502: {"description": "Origin answered with an error status"},
    },
)
async def random_image(
    repo: ImageRepositoryDep,
    delivery: ImageDeliveryDep,
    tag: str | None = Query(None, description="Only pick images carrying this exact tag"),
) -> StreamingResponse:
    """Stream a random image, optionally restricted to one tag."""
    tag = tag or None
    image = await repo.pick_random(tag)
    logger.info("Delivering image %d (tag=%r): %s", image.id, tag, image.url)
    return await delivery.stream(image)
