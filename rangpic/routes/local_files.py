"""Direct access to files in the local image store."""

from fastapi import APIRouter
from starlette.responses import StreamingResponse

from rangpic.core.dependencies import ImageDeliveryDep

router = APIRouter(
    prefix="/local",
    tags=["local"],
)


@router.get("/{name:path}", response_class=StreamingResponse)
async def local_file(name: str, delivery: ImageDeliveryDep) -> StreamingResponse:
    """Serve a downloaded image by its name under the store root."""
    return await delivery.stream_local(name)
