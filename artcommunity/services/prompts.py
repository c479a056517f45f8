"""
Saved prompts: listing, CRUD and derived tag/category aggregates
"""
from collections import Counter
from sqlalchemy import String, cast, delete, func, or_, select, update
from typing import Any, Dict, List, Optional
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.config.settings import settings
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import Prompt, User, utcnow
from artcommunity.errors import AuthorizationError, NotFoundError, ValidationError
from artcommunity.services.artworks import same_user
from artcommunity.services.query_builder import QueryBuilder, like_pattern

logger = logging.getLogger(__name__)

CATEGORY_COLORS = {
    "portraits": "#f97316",
    "landscapes": "#84cc16",
    "fantasy": "#8b5cf6",
    "scifi": "#06b6d4",
    "abstract": "#ec4899",
    "animals": "#f59e0b",
    "architecture": "#64748b",
    "anime": "#0ea5e9",
    "digital": "#10b981",
    "photography": "#6366f1",
    "concept": "#f43f5e",
    "character": "#d946ef",
}
DEFAULT_CATEGORY_COLOR = "#64748b"
POPULAR_TAGS_LIMIT = 20
PROMPT_SORT_COLUMNS = {
    "updatedAt": Prompt.updated_at,
    "createdAt": Prompt.created_at,
    "title": Prompt.title,
    "usageCount": Prompt.usage_count,
}
DEFAULT_PROMPT_LIMIT = 20


def _prompt_columns():
    return (
        Prompt.id,
        Prompt.user_id.label("userId"),
        Prompt.title,
        Prompt.text,
        Prompt.category,
        Prompt.tags,
        Prompt.negative,
        Prompt.notes,
        Prompt.parameters,
        Prompt.is_public.label("isPublic"),
        Prompt.is_favorite.label("favorite"),
        Prompt.usage_count.label("usageCount"),
        Prompt.created_at.label("createdAt"),
        Prompt.updated_at.label("updatedAt"),
        User.username.label("author"),
    )


def _shape(row: Dict[str, Any]) -> Dict[str, Any]:
    row["tags"] = row.get("tags") or []
    row["parameters"] = row.get("parameters") or {}
    return row


def _clean_tags(tags: Optional[List[str]]) -> List[str]:
    cleaned = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class PromptQueryBuilder(QueryBuilder):
    """Filters for the prompt listing"""

    def visible_to(self, user_id: int, tab: str) -> "PromptQueryBuilder":
        if tab == "community":
            self.where(lambda p: or_(Prompt.is_public.is_(True), Prompt.user_id == p), user_id)
        else:
            self.where(lambda p: Prompt.user_id == p, user_id)
        return self

    def category(self, category: Optional[str]) -> "PromptQueryBuilder":
        if category and category != "all":
            self.where(lambda p: Prompt.category == p, category)
        return self

    def search(self, term: Optional[str]) -> "PromptQueryBuilder":
        if term:
            self.where(
                lambda p: or_(
                    Prompt.title.ilike(p, escape="\\"),
                    Prompt.text.ilike(p, escape="\\"),
                    cast(Prompt.tags, String).ilike(p, escape="\\"),
                ),
                like_pattern(term),
            )
        return self

    def favorites(self, only_favorites: bool) -> "PromptQueryBuilder":
        if only_favorites:
            self.predicates.append(Prompt.is_favorite.is_(True))
        return self

    def sort(self, sort_by: Optional[str], direction: Optional[str]) -> "PromptQueryBuilder":
        column = PROMPT_SORT_COLUMNS.get(sort_by or "", Prompt.updated_at)
        if direction == "asc":
            self.ordering.extend([column.asc(), Prompt.id.asc()])
        else:
            self.ordering.extend([column.desc(), Prompt.id.desc()])
        return self


def list_prompts(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    user_id: Any,
    tab: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    favorites: bool = False,
    sort_by: Optional[str] = None,
    sort_direction: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Dict[str, Any]:
    if user_id is None or user_id == "":
        raise ValidationError("UserId is required")
    if not same_user(identity, user_id):
        raise AuthorizationError("Forbidden")
    limit = DEFAULT_PROMPT_LIMIT if limit is None else limit
    offset = 0 if offset is None else offset
    if limit < 0 or offset < 0:
        raise ValidationError("limit and offset must be non-negative")
    limit = min(limit, settings.FEED_MAX_LIMIT)

    builder = (
        PromptQueryBuilder()
        .visible_to(identity.id, tab or "my-prompts")
        .category(category)
        .search(search)
        .favorites(favorites)
        .sort(sort_by, sort_direction)
    )
    base = select(*_prompt_columns()).outerjoin(User, User.id == Prompt.user_id)
    rows = gateway.query(builder.page_statement(base, limit, offset)).rows
    total = int(gateway.query(builder.count_statement(Prompt.__table__)).scalar(0))
    return {
        "prompts": [_shape(row) for row in rows],
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + limit < total,
        },
    }


def _get_prompt(gateway: PersistenceGateway, prompt_id: int) -> Dict[str, Any]:
    row = gateway.query(
        select(*_prompt_columns()).outerjoin(User, User.id == Prompt.user_id).where(Prompt.id == prompt_id)
    ).first()
    if row is None:
        raise NotFoundError("Prompt not found")
    return _shape(row)


def create_prompt(gateway: PersistenceGateway, identity: AuthenticatedUser, data: Dict[str, Any]) -> Dict[str, Any]:
    if data.get("userId") is None or not data.get("title") or not data.get("text"):
        raise ValidationError("Missing required fields (userId, title, text)")
    if not same_user(identity, data["userId"]):
        raise AuthorizationError("Forbidden")
    prompt = gateway.add(Prompt(
        user_id=identity.id,
        title=data["title"],
        text=data["text"],
        category=data.get("category") or None,
        tags=_clean_tags(data.get("tags")),
        negative=data.get("negative") or None,
        notes=data.get("notes") or None,
        parameters=data.get("parameters") or {},
        is_public=bool(data.get("isPublic")),
        is_favorite=bool(data.get("favorite")),
    ))
    gateway.commit()
    logger.info(f"Prompt {prompt.id} created by user {identity.id}")
    return _get_prompt(gateway, prompt.id)


def _owned_prompt(gateway: PersistenceGateway, identity: AuthenticatedUser, prompt_id: Any) -> int:
    if not prompt_id:
        raise ValidationError("Prompt ID is required")
    row = gateway.query(select(Prompt.id, Prompt.user_id).where(Prompt.id == prompt_id)).first()
    if row is None:
        raise NotFoundError("Prompt not found")
    if row["user_id"] != identity.id:
        raise AuthorizationError("You do not have permission to edit this prompt")
    return row["id"]


def update_prompt(gateway: PersistenceGateway, identity: AuthenticatedUser, data: Dict[str, Any]) -> Dict[str, Any]:
    if not data.get("promptId") or data.get("userId") is None or not data.get("title") or not data.get("text"):
        raise ValidationError("Missing required fields")
    if not same_user(identity, data["userId"]):
        raise AuthorizationError("Forbidden")
    prompt_id = _owned_prompt(gateway, identity, data["promptId"])
    values = {
        "title": data["title"],
        "text": data["text"],
        "category": data.get("category") or None,
        "tags": _clean_tags(data.get("tags")),
        "negative": data.get("negative") or None,
        "notes": data.get("notes") or None,
        "parameters": data.get("parameters") or {},
        "is_public": bool(data.get("isPublic")),
        "updated_at": utcnow(),
    }
    if data.get("favorite") is not None:
        values["is_favorite"] = bool(data["favorite"])
    gateway.query(update(Prompt).where(Prompt.id == prompt_id).values(**values))
    gateway.commit()
    return _get_prompt(gateway, prompt_id)


def delete_prompt(gateway: PersistenceGateway, identity: AuthenticatedUser, prompt_id: Any):
    prompt_id = _owned_prompt(gateway, identity, prompt_id)
    gateway.query(delete(Prompt).where(Prompt.id == prompt_id))
    gateway.commit()
    logger.info(f"Prompt {prompt_id} deleted by user {identity.id}")


def use_prompt(gateway: PersistenceGateway, identity: AuthenticatedUser, prompt_id: int) -> Dict[str, Any]:
    """Count one use of a prompt the requester can see"""
    row = gateway.query(
        select(Prompt.id, Prompt.user_id, Prompt.is_public).where(Prompt.id == prompt_id)
    ).first()
    if row is None:
        raise NotFoundError("Prompt not found")
    if row["user_id"] != identity.id and not row["is_public"]:
        raise AuthorizationError("Forbidden")
    gateway.query(
        update(Prompt).where(Prompt.id == prompt_id).values(usage_count=Prompt.usage_count + 1)
    )
    gateway.commit()
    count = gateway.query(select(Prompt.usage_count).where(Prompt.id == prompt_id)).scalar(0)
    return {"id": prompt_id, "usageCount": int(count)}


def get_categories(gateway: PersistenceGateway) -> List[Dict[str, Any]]:
    """Categories grouped from the prompts table, most used first"""
    count = func.count(Prompt.id).label("count")
    rows = gateway.query(
        select(Prompt.category.label("id"), Prompt.category.label("name"), count)
        .where(Prompt.category.isnot(None))
        .group_by(Prompt.category)
        .order_by(count.desc(), Prompt.category)
    ).rows
    return [
        {**row, "count": int(row["count"]), "color": CATEGORY_COLORS.get(row["id"], DEFAULT_CATEGORY_COLOR)}
        for row in rows
    ]


def get_popular_tags(gateway: PersistenceGateway, limit: int = POPULAR_TAGS_LIMIT) -> List[Dict[str, Any]]:
    """Most frequent tags across all prompts"""
    counts = Counter()
    for row in gateway.query(select(Prompt.tags).where(Prompt.tags.isnot(None))).rows:
        tags = row["tags"]
        if isinstance(tags, list):
            counts.update(str(tag) for tag in tags if tag)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return [{"id": name, "name": name, "count": count} for name, count in ranked]
