"""Catalog metadata endpoints (JSON)."""

import logging

from fastapi import APIRouter, Query, Response
from pydantic import BaseModel

from rangpic.core.dependencies import ImageRepositoryDep
from rangpic.services.delivery import NO_CACHE_HEADERS

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["catalog"],
)


class ImageRecord(BaseModel):
    """Schema for a catalog record."""

    id: int
    url: str
    tags: list[str]

    model_config = {"from_attributes": True}


@router.get("/random-image", response_model=ImageRecord)
async def random_image_record(
    response: Response,
    repo: ImageRepositoryDep,
    tag: str | None = Query(None, description="Only pick images carrying this exact tag"),
):
    """Return a random catalog record instead of its bytes."""
    tag = tag or None
    image = await repo.pick_random(tag)
    logger.info("Serving image record %d (tag=%r): %s", image.id, tag, image.url)
    response.headers["Cache-Control"] = NO_CACHE_HEADERS["Cache-Control"]
    return image.to_dict()


@router.get("/tags", response_model=list[str])
async def list_tags(repo: ImageRepositoryDep):
    """All tags in the catalog, deduplicated and sorted."""
    return await repo.list_distinct_tags()
