"""SQLAlchemy models for user accounts."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from photomind.metadata import Base


class User(Base):
    """Registered account owning zero or more images.

    Attributes:
        id: Integer primary key, carried as the JWT subject
        username: Unique display handle (at least 4 characters)
        email: Unique login address
        password_hash: argon2 hash of the password
        created_at: Registration timestamp
        updated_at: Last update timestamp
        images: Relationship to Image records (deleted with the user)
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    images = relationship(
        "Image",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, email={self.email})>"
