"""
Generation history

The requester's own artworks, filterable by saved/shared state and
searchable by title or prompt, with like and collection flags per row.
"""
from datetime import datetime, timedelta
from sqlalchemy import exists, or_, select
from typing import Any, Dict, List, Optional
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import Artwork, Collection, CollectionItem, Like
from artcommunity.errors import AuthorizationError, ValidationError
from artcommunity.services.artworks import same_user
from artcommunity.services.feed import decode_parameters, likes_count_expr, resolve_pagination
from artcommunity.services.query_builder import QueryBuilder, like_pattern

logger = logging.getLogger(__name__)

HISTORY_FILTERS = ("all", "saved", "shared")


def saved_by_expr(user_id):
    """True when the outer artwork sits in one of the user's collections"""
    return exists(
        select(CollectionItem.id)
        .join(Collection, Collection.id == CollectionItem.collection_id)
        .where(CollectionItem.artwork_id == Artwork.id, Collection.user_id == user_id)
    )


def liked_by_expr(user_id):
    return exists(select(Like.id).where(Like.artwork_id == Artwork.id, Like.user_id == user_id))


class HistoryQueryBuilder(QueryBuilder):
    """Query builder for one user's artworks"""

    def __init__(self, owner_id: int, now: Optional[datetime] = None):
        super().__init__(now)
        self.owner_id = owner_id
        self.where(lambda p: Artwork.user_id == p, owner_id)

    def filter(self, name: Optional[str]) -> "HistoryQueryBuilder":
        if name == "saved":
            self.where(saved_by_expr, self.owner_id)
        elif name == "shared":
            self.predicates.append(Artwork.is_public.is_(True))
        return self

    def search(self, term: Optional[str]) -> "HistoryQueryBuilder":
        if term:
            self.where(
                lambda p: or_(Artwork.title.ilike(p, escape="\\"), Artwork.prompt.ilike(p, escape="\\")),
                like_pattern(term),
            )
        return self

    def newest_first(self) -> "HistoryQueryBuilder":
        self.order(lambda: (Artwork.created_at.desc(), Artwork.id.desc()))
        return self

    def page(self, limit: int, offset: int):
        base = select(
            *Artwork.__table__.columns,
            likes_count_expr().label("likes_count"),
            liked_by_expr(self.owner_id).label("is_liked"),
            saved_by_expr(self.owner_id).label("is_saved"),
        )
        return self.page_statement(base, limit, offset)

    def count(self):
        return self.count_statement(Artwork.__table__)


def group_by_day(artworks: List[Dict[str, Any]], now: datetime) -> Dict[str, List[Dict[str, Any]]]:
    """Bucket rows under ``today``, ``yesterday`` or their ISO date"""
    today = now.date()
    yesterday = today - timedelta(days=1)
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for artwork in artworks:
        day = artwork["created_at"].date()
        if day == today:
            key = "today"
        elif day == yesterday:
            key = "yesterday"
        else:
            key = day.isoformat()
        groups.setdefault(key, []).append(artwork)
    return groups


def list_history(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    user_id: Any,
    filter_name: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    One page of the requester's generation history
    Args:
        user_id: Requested owner; must be the requester
        filter_name: ``all``, ``saved`` or ``shared``; anything else means ``all``
        search: Literal substring of title or prompt
    Returns:
        ``{"artworks", "groupedArtworks", "pagination"}``
    """
    if user_id is None or user_id == "":
        raise ValidationError("User ID is required")
    if not same_user(identity, user_id):
        raise AuthorizationError("You can only view your own history")
    limit, offset = resolve_pagination(limit, offset)

    builder = (
        HistoryQueryBuilder(identity.id, now)
        .filter(filter_name if filter_name in HISTORY_FILTERS else "all")
        .search(search)
        .newest_first()
    )
    artworks = gateway.query(builder.page(limit, offset)).rows
    total = int(gateway.query(builder.count()).scalar(0))

    for artwork in artworks:
        artwork["parameters"] = decode_parameters(artwork.get("parameters"))
        artwork["is_liked"] = bool(artwork["is_liked"])
        artwork["is_saved"] = bool(artwork["is_saved"])

    return {
        "artworks": artworks,
        "groupedArtworks": group_by_day(artworks, builder.now),
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + limit < total,
        },
    }
