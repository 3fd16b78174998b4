"""
SQLAlchemy models for the rangpic image catalog.
"""

from .base import Base
from .image import Image, ImageTag

__all__: list[str] = ["Base", "Image", "ImageTag"]
