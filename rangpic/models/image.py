"""
Image catalog models: one row per image, one row per tag label.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin


class Image(Base, TimestampMixin):
    """
    Image record in the catalog.

    Attributes:
        id: Unique identifier for the image
        url: Absolute remote URL, or a local reference starting with the local marker
        tag_links: Tag rows attached to the image
        created_at: Timestamp when the image was added
        updated_at: Timestamp when the image was last updated
    """

    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(Text, nullable=False, unique=True)

    tag_links = relationship(
        "ImageTag",
        back_populates="image",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ImageTag.id",
    )

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]

    def __repr__(self):
        return f"<Image(id={self.id}, url='{self.url}')>"

    def to_dict(self):
        """Convert image object to the public JSON shape."""
        return {
            "id": self.id,
            "url": self.url,
            "tags": self.tags,
        }


class ImageTag(Base):
    """A single tag label on an image. Matching is exact and case-sensitive."""

    __tablename__ = "image_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = Column(String(255), nullable=False, index=True)

    image = relationship("Image", back_populates="tag_links")

    def __repr__(self):
        return f"<ImageTag(image_id={self.image_id}, tag='{self.tag}')>"
