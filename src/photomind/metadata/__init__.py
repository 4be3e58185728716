"""Image and tag storage models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Table
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()

TAG_SOURCE_USER = "user"
TAG_SOURCE_AI = "ai"


image_tags = Table(
    "image_tags",
    Base.metadata,
    Column("image_id", Integer, ForeignKey("images.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Index("idx_image_tags_tag_id", "tag_id"),
)


class Image(Base):
    """One uploaded image owned by a single user."""

    __tablename__ = "images"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # File information
    filename = Column(String(255), nullable=False)  # Name as uploaded
    file_path = Column(String(255), nullable=False)
    thumbnail_path = Column(String(255), nullable=False)

    # EXIF data
    camera_make = Column(String(100))
    camera_model = Column(String(100))
    taken_at = Column(DateTime, index=True)
    latitude = Column(Float)
    longitude = Column(Float)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="images")
    tags = relationship("Tag", secondary=image_tags, back_populates="images", order_by="Tag.name")

    __table_args__ = (
        Index("idx_images_user_created", "user_id", "created_at"),
        Index("idx_images_user_taken", "user_id", "taken_at"),
    )

    def __repr__(self) -> str:
        return f"<Image(id={self.id}, user_id={self.user_id}, filename={self.filename})>"


class Tag(Base):
    """Globally unique label with provenance ('user' or 'ai')."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    source = Column(String(16), nullable=False, default=TAG_SOURCE_USER)
    created_at = Column(DateTime, default=datetime.utcnow)

    images = relationship("Image", secondary=image_tags, back_populates="tags")

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name}, source={self.source})>"


# Register the users table so relationship("User") resolves wherever images are used.
from photomind.auth import models as _auth_models  # noqa: E402,F401
