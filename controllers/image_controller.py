from fastapi import Request, HTTPException
from fastapi.responses import Response
from typing import Dict, Any

from dal.image_dal import ImageDAL


async def get_image(request: Request, image_id: str) -> Dict[str, Any]:
    """Controller to fetch stored metadata for a game image.

    The feature list is withheld: it is the answer to the game.

    Raises:
        HTTPException(404) if the image is not found.
    """
    image_dal = ImageDAL(request.app.state.db_initializer)

    record = await image_dal.get_image_by_id(image_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Image not found")

    return {
        "id": record.id,
        "url": record.url,
        "alt_text": record.alt_text,
        "difficulty": record.difficulty.value,
        "feature_count": len(record.features),
        "has_thumbnail": record.thumbnail is not None,
        "created_at": record.created_at,
    }


async def get_thumbnail(request: Request, image_id: str) -> Response:
    """Controller to fetch the thumbnail bytes for a stored image.

    Args:
        request: FastAPI Request (to access app.state.db_initializer).
        image_id: Id of the image row.

    Returns:
        FastAPI `Response` with `content` set to raw PNG bytes and
        `media_type` set to `image/png`.

    Raises:
        HTTPException(404) if the image or thumbnail is not found.
    """
    image_dal = ImageDAL(request.app.state.db_initializer)

    record = await image_dal.get_image_by_id(image_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Image not found")

    if not record.thumbnail:
        raise HTTPException(status_code=404, detail="Thumbnail not available for this image")

    # Stored thumbnails are raw PNG bytes; return them directly
    return Response(content=record.thumbnail, media_type="image/png")
