"""
Community feed

Builds the public artwork listing from optional filter, sort and pagination
parameters, then attaches tags and pagination metadata.
"""
from collections import defaultdict
from datetime import datetime
from sqlalchemy import exists, func, or_, select
from typing import Any, Dict, List, Optional
import json
import logging
from artcommunity.config.settings import settings
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import Artwork, ArtworkTag, Comment, Like, Tag, User
from artcommunity.errors import ValidationError
from artcommunity.services.query_builder import QueryBuilder, days_ago, like_pattern

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("newest", "trending", "popular")
TIME_RANGE_DAYS = {"today": 0, "week": 7, "month": 30}
TRENDING_WINDOW_DAYS = 7


def decode_parameters(raw: Any) -> Any:
    """Stored parameter blob back to an object; unparsable text is returned as-is"""
    if raw is None or not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def likes_count_expr(since=None):
    """Correlated like count for the outer artwork row"""
    stmt = select(func.count(Like.id)).where(Like.artwork_id == Artwork.id)
    if since is not None:
        stmt = stmt.where(Like.created_at >= since)
    return stmt.correlate(Artwork).scalar_subquery()


def comments_count_expr():
    return (
        select(func.count(Comment.id))
        .where(Comment.artwork_id == Artwork.id)
        .correlate(Artwork)
        .scalar_subquery()
    )


class FeedQueryBuilder(QueryBuilder):
    """Query builder for the public artwork feed"""

    def __init__(self, now: Optional[datetime] = None):
        super().__init__(now)
        self.predicates.append(Artwork.is_public.is_(True))

    def search(self, term: Optional[str]) -> "FeedQueryBuilder":
        if term:
            self.where(
                lambda p: or_(Artwork.title.ilike(p, escape="\\"), Artwork.description.ilike(p, escape="\\")),
                like_pattern(term),
            )
        return self

    def category(self, name: Optional[str]) -> "FeedQueryBuilder":
        if name and name != "all":
            self.where(
                lambda p: exists(
                    select(ArtworkTag.artwork_id)
                    .join(Tag, Tag.id == ArtworkTag.tag_id)
                    .where(ArtworkTag.artwork_id == Artwork.id, Tag.name == p)
                ),
                name,
            )
        return self

    def model(self, model_type: Optional[str]) -> "FeedQueryBuilder":
        if model_type and model_type != "all":
            self.where(lambda p: Artwork.model == p, model_type)
        return self

    def time_range(self, time_range: Optional[str]) -> "FeedQueryBuilder":
        days = TIME_RANGE_DAYS.get(time_range or "")
        if days is not None:
            self.where(lambda p: Artwork.created_at >= p, days_ago(days, self.now))
        return self

    def sort(self, sort_by: Optional[str]) -> "FeedQueryBuilder":
        if sort_by == "trending":
            self.order(
                lambda since: (likes_count_expr(since).desc(), Artwork.created_at.desc()),
                days_ago(TRENDING_WINDOW_DAYS, self.now),
            )
        elif sort_by == "popular":
            self.order(lambda: (likes_count_expr().desc(), Artwork.views.desc(), Artwork.created_at.desc()))
        else:
            self.order(lambda: Artwork.created_at.desc())
        # Final tie-break
        self.ordering.append(Artwork.id.desc())
        return self

    def page(self, limit: int, offset: int):
        base = (
            select(
                *Artwork.__table__.columns,
                User.username,
                User.display_name,
                User.avatar_url,
                likes_count_expr().label("likes_count"),
                comments_count_expr().label("comments_count"),
            )
            .join(User, User.id == Artwork.user_id)
        )
        return self.page_statement(base, limit, offset)

    def count(self):
        return self.count_statement(Artwork.__table__.join(User.__table__, User.id == Artwork.user_id))


def fetch_tags(gateway: PersistenceGateway, artwork_ids: List[int]) -> Dict[int, List[str]]:
    """Tag names for many artworks in one query"""
    tags = defaultdict(list)
    if not artwork_ids:
        return tags
    stmt = (
        select(ArtworkTag.artwork_id, Tag.name)
        .join(Tag, Tag.id == ArtworkTag.tag_id)
        .where(ArtworkTag.artwork_id.in_(artwork_ids))
        .order_by(Tag.name)
    )
    for row in gateway.query(stmt).rows:
        tags[row["artwork_id"]].append(row["name"])
    return tags


def resolve_pagination(limit: Optional[int], offset: Optional[int]):
    limit = settings.FEED_DEFAULT_LIMIT if limit is None else limit
    offset = 0 if offset is None else offset
    if limit < 0 or offset < 0:
        raise ValidationError("limit and offset must be non-negative")
    return min(limit, settings.FEED_MAX_LIMIT), offset


def get_community_feed(
    gateway: PersistenceGateway,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    category: Optional[str] = None,
    sort_by: Optional[str] = None,
    search: Optional[str] = None,
    model_type: Optional[str] = None,
    time_range: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Public artworks page with pagination metadata
    Returns:
        ``{"artworks": [...], "pagination": {total, limit, offset, hasMore}}``
    """
    limit, offset = resolve_pagination(limit, offset)
    builder = (
        FeedQueryBuilder(now)
        .search(search)
        .category(category)
        .model(model_type)
        .time_range(time_range)
        .sort(sort_by if sort_by in SORT_OPTIONS else "newest")
    )
    logger.debug(f"Feed query with {len(builder.params)} bound values")

    artworks = gateway.query(builder.page(limit, offset)).rows
    total = int(gateway.query(builder.count()).scalar(0))

    tags = fetch_tags(gateway, [artwork["id"] for artwork in artworks])
    for artwork in artworks:
        artwork["parameters"] = decode_parameters(artwork.get("parameters"))
        artwork["tags"] = tags.get(artwork["id"], [])

    return {
        "artworks": artworks,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + limit < total,
        },
    }
