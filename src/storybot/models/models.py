"""Database models for the bot."""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from storybot.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """User model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    telegram_id = Column(Integer, unique=True, nullable=False)
    username = Column(String, nullable=True)
    reading_speed = Column(Float, default=0.9)
    show_translation = Column(Boolean, default=True)

    # Relationships
    progress = relationship("BookProgressRecord", back_populates="user", cascade="all, delete-orphan")


class Book(Base, TimestampMixin):
    """Book content: story sentences and vocabulary stored as JSON text."""

    __tablename__ = "books"

    pk = Column(Integer, primary_key=True)
    id = Column(String, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, default="")
    icon = Column(String, default="📚")
    filename = Column(String, nullable=True)
    story = Column(Text, nullable=False, default="[]")
    vocabulary = Column(Text, nullable=False, default="[]")
    created_date = Column(DateTime(timezone=True), nullable=False)


class BookProgressRecord(Base, TimestampMixin):
    """Persisted reading and vocabulary progress of one user for one book."""

    __tablename__ = "book_progress"
    __table_args__ = (UniqueConstraint("user_id", "book_id", name="uq_book_progress_user_book"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    book_id = Column(String, nullable=False, index=True)  # purged by BookService.delete_book
    data = Column(Text, nullable=False)

    # Relationships
    user = relationship("User", back_populates="progress")
