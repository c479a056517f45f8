from .models import (
    Base, User, UserSession, Artwork, Like, Comment, Tag, ArtworkTag,
    Collection, CollectionItem, Prompt, utcnow
)
from .connection import engine, SessionLocal, get_db, init_db, create_tables, drop_tables
from .gateway import PersistenceGateway, QueryResult, get_gateway
__all__ = [
    "Base",
    "User",
    "UserSession",
    "Artwork",
    "Like",
    "Comment",
    "Tag",
    "ArtworkTag",
    "Collection",
    "CollectionItem",
    "Prompt",
    "utcnow",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "create_tables",
    "drop_tables",
    "PersistenceGateway",
    "QueryResult",
    "get_gateway"
]
