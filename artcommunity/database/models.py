"""
Database models for the AI Art Community Service
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Float, ForeignKey, JSON,
    UniqueConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime, timezone
Base = declarative_base()
def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
class User(Base):
    """User model - identity, profile and credit balance"""
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    credits = Column(Integer, default=1000, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    # Relationships
    artworks = relationship("Artwork", back_populates="user")
    collections = relationship("Collection", back_populates="user")
    sessions = relationship("UserSession", back_populates="user")
class UserSession(Base):
    """Server-side login session referenced by the session cookie"""
    __tablename__ = "user_sessions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    session_token = Column(String(128), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    user = relationship("User", back_populates="sessions")
class Artwork(Base):
    """A generated image, private until published to the community feed"""
    __tablename__ = "artworks"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=False)
    prompt = Column(Text, nullable=True)
    model = Column(String(100), nullable=True)
    parameters = Column(Text, nullable=True)  # JSON-serialized generation parameters
    is_public = Column(Boolean, default=False, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    # Relationships
    user = relationship("User", back_populates="artworks")
    __table_args__ = (
        Index("ix_artworks_user_image", "user_id", "image_url"),
    )
class Like(Base):
    __tablename__ = "likes"
    id = Column(Integer, primary_key=True, autoincrement=True)
    artwork_id = Column(Integer, ForeignKey("artworks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    __table_args__ = (
        UniqueConstraint("artwork_id", "user_id", name="uq_likes_artwork_user"),
    )
class Comment(Base):
    __tablename__ = "comments"
    id = Column(Integer, primary_key=True, autoincrement=True)
    artwork_id = Column(Integer, ForeignKey("artworks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    rating = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
class Tag(Base):
    __tablename__ = "tags"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
class ArtworkTag(Base):
    __tablename__ = "artwork_tags"
    artwork_id = Column(Integer, ForeignKey("artworks.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
class Collection(Base):
    """User-owned named grouping of artworks"""
    __tablename__ = "collections"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    # Relationships
    user = relationship("User", back_populates="collections")
class CollectionItem(Base):
    __tablename__ = "collection_items"
    id = Column(Integer, primary_key=True, autoincrement=True)
    collection_id = Column(Integer, ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True)
    artwork_id = Column(Integer, ForeignKey("artworks.id", ondelete="CASCADE"), nullable=False)
    added_at = Column(DateTime, default=utcnow, nullable=False)
    __table_args__ = (
        UniqueConstraint("collection_id", "artwork_id", name="uq_collection_items_pair"),
    )
class Prompt(Base):
    """Saved prompt template"""
    __tablename__ = "prompts"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    text = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)
    tags = Column(JSON(none_as_null=True), nullable=True)  # list of tag names
    negative = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    parameters = Column(JSON(none_as_null=True), nullable=True)
    is_favorite = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
