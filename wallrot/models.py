"""
Data models for wallpaper search results.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class ImageDescriptor(BaseModel):
    """A single wallpaper from a search result."""
    model_config = ConfigDict(frozen=True)

    path: str
    id: str = ""
    url: str = ""
    resolution: str = ""
    file_type: Optional[str] = None
