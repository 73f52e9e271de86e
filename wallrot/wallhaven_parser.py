"""
Wallhaven search response parser.
Converts search API responses to our Pydantic models.
"""

import logging
from typing import Dict, Any, List, Optional
from .models import ImageDescriptor

logger = logging.getLogger(__name__)


def _parse_image(item: Any, index: int) -> Optional[ImageDescriptor]:
    """
    Parse a single search result item.

    Args:
        item: Element of the response "data" array
        index: Position of the item, for logging

    Returns:
        ImageDescriptor, or None if the item has no usable path
    """
    if not isinstance(item, dict):
        logger.warning("Search result item %d is not an object, skipping", index)
        return None

    path = item.get("path")
    if not isinstance(path, str) or not path:
        logger.warning("Search result item %d has no valid 'path' field, skipping", index)
        return None

    return ImageDescriptor(
        path=path,
        id=str(item.get("id", "")),
        url=item.get("url") or "",
        resolution=item.get("resolution") or "",
        file_type=item.get("file_type"),
    )


def parse_search_response(data: Any) -> List[ImageDescriptor]:
    """
    Extract image descriptors from a search response.

    Based on the documented Wallhaven response shape:
    {"data": [{"id": ..., "path": ..., ...}], "meta": {...}}

    Args:
        data: Decoded JSON body

    Returns:
        Descriptors in the order returned by the API

    Raises:
        ValueError: If the "data" field is missing or not a list
    """
    if not isinstance(data, dict):
        raise ValueError("search response is not a JSON object")

    items = data.get("data")
    if not isinstance(items, list):
        raise ValueError("search response has no 'data' array")

    images = []
    for index, item in enumerate(items):
        image = _parse_image(item, index)
        if image is not None:
            images.append(image)

    logger.debug("Parsed %d of %d search result items", len(images), len(items))
    return images


def summarize_meta(data: Dict[str, Any]) -> Dict[str, Any]:
    """Pick paging fields from the response "meta" object for logging."""
    meta = data.get("meta") or {}
    if not isinstance(meta, dict):
        return {}
    return {k: meta[k] for k in ("current_page", "last_page", "total") if k in meta}
