"""
Collection and collection-item handlers

Ownership is checked here: a collection is readable by its owner or, when
flagged public, by anyone; only the owner may change it.
"""
from sqlalchemy import delete, func, select, update
from typing import Any, Dict, List, Optional
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import Artwork, Collection, CollectionItem, Like, User, utcnow
from artcommunity.errors import AuthorizationError, NotFoundError, ValidationError
from artcommunity.services.artworks import visible_to
from artcommunity.services.feed import decode_parameters

logger = logging.getLogger(__name__)


def _item_count_expr():
    return (
        select(func.count(CollectionItem.id))
        .where(CollectionItem.collection_id == Collection.id)
        .correlate(Collection)
        .scalar_subquery()
    )


def _cover_image_expr():
    return (
        select(Artwork.image_url)
        .join(CollectionItem, CollectionItem.artwork_id == Artwork.id)
        .where(CollectionItem.collection_id == Collection.id)
        .order_by(CollectionItem.added_at.desc(), CollectionItem.id.desc())
        .limit(1)
        .correlate(Collection)
        .scalar_subquery()
    )


def _load_collection(gateway: PersistenceGateway, collection_id: Optional[int]) -> Dict[str, Any]:
    if not collection_id:
        raise ValidationError("Collection ID is required")
    row = gateway.query(
        select(Collection.id, Collection.user_id, Collection.is_public).where(Collection.id == collection_id)
    ).first()
    if row is None:
        raise NotFoundError("Collection not found")
    return row


def _require_owner(collection: Dict[str, Any], identity: AuthenticatedUser):
    if collection["user_id"] != identity.id:
        raise AuthorizationError("Access denied")


def _require_readable(collection: Dict[str, Any], identity: AuthenticatedUser):
    if not collection["is_public"]:
        _require_owner(collection, identity)


def _touch(gateway: PersistenceGateway, collection_id: int):
    gateway.query(update(Collection).where(Collection.id == collection_id).values(updated_at=utcnow()))


def _shape_item(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "collection_id": row["collection_id"],
        "artwork_id": row["artwork_id"],
        "added_at": row["added_at"],
        "artwork": {
            "id": row["artwork_id"],
            "title": row["title"],
            "description": row["description"],
            "image_url": row["image_url"],
            "user_id": row["user_id"],
            "username": row["username"],
            "display_name": row["display_name"],
            "avatar_url": row["avatar_url"],
        },
    }


def _items_statement():
    return (
        select(
            CollectionItem.id,
            CollectionItem.collection_id,
            CollectionItem.artwork_id,
            CollectionItem.added_at,
            Artwork.title,
            Artwork.description,
            Artwork.image_url,
            Artwork.user_id,
            User.username,
            User.display_name,
            User.avatar_url,
        )
        .join(Artwork, CollectionItem.artwork_id == Artwork.id)
        .join(User, Artwork.user_id == User.id)
    )


def get_collection_items(
    gateway: PersistenceGateway, identity: AuthenticatedUser, collection_id: Optional[int]
) -> List[Dict[str, Any]]:
    """Items of a collection with artwork and owner display data, newest first"""
    collection = _load_collection(gateway, collection_id)
    _require_readable(collection, identity)
    rows = gateway.query(
        _items_statement()
        .where(CollectionItem.collection_id == collection_id)
        .order_by(CollectionItem.added_at.desc(), CollectionItem.id.desc())
    ).rows
    return [_shape_item(row) for row in rows]


def remove_collection_item(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    collection_id: Optional[int],
    artwork_id: Optional[int],
):
    if not collection_id or not artwork_id:
        raise ValidationError("Collection ID and artwork ID are required")
    collection = _load_collection(gateway, collection_id)
    _require_owner(collection, identity)

    removed = gateway.query(
        delete(CollectionItem).where(
            CollectionItem.collection_id == collection_id,
            CollectionItem.artwork_id == artwork_id,
        )
    ).rowcount
    if not removed:
        gateway.rollback()
        raise NotFoundError("Item not found in collection")

    _touch(gateway, collection_id)
    gateway.commit()
    logger.info(f"Artwork {artwork_id} removed from collection {collection_id}")


def _artwork_visible(gateway: PersistenceGateway, identity: AuthenticatedUser, artwork_id: int) -> bool:
    stmt = select(Artwork.id).where(Artwork.id == artwork_id, visible_to(identity))
    return gateway.query(stmt).first() is not None


def add_collection_item(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    collection_id: Optional[int],
    artwork_id: Optional[int],
) -> Dict[str, Any]:
    """Add one artwork; adding an existing pair returns the existing item"""
    if not collection_id or not artwork_id:
        raise ValidationError("Collection ID and artwork ID are required")
    collection = _load_collection(gateway, collection_id)
    _require_owner(collection, identity)
    if not _artwork_visible(gateway, identity, artwork_id):
        raise NotFoundError("Artwork not found")

    existing = gateway.query(
        select(CollectionItem.id, CollectionItem.collection_id, CollectionItem.artwork_id, CollectionItem.added_at)
        .where(CollectionItem.collection_id == collection_id, CollectionItem.artwork_id == artwork_id)
    ).first()
    if existing:
        return {**existing, "created": False}

    item = gateway.add(CollectionItem(collection_id=collection_id, artwork_id=artwork_id))
    _touch(gateway, collection_id)
    gateway.commit()
    return {
        "id": item.id,
        "collection_id": item.collection_id,
        "artwork_id": item.artwork_id,
        "added_at": item.added_at,
        "created": True,
    }


def add_collection_items(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    collection_id: Optional[int],
    artwork_ids: Optional[List[int]],
) -> List[Dict[str, Any]]:
    """Bulk add, skipping artworks already present, unknown or not visible"""
    if not collection_id:
        raise ValidationError("Collection ID is required")
    if not artwork_ids:
        raise ValidationError("At least one artwork ID is required")
    collection = _load_collection(gateway, collection_id)
    _require_owner(collection, identity)

    wanted = list(dict.fromkeys(artwork_ids))
    known = {
        row["id"]
        for row in gateway.query(select(Artwork.id).where(Artwork.id.in_(wanted), visible_to(identity))).rows
    }
    present = {
        row["artwork_id"]
        for row in gateway.query(
            select(CollectionItem.artwork_id).where(
                CollectionItem.collection_id == collection_id,
                CollectionItem.artwork_id.in_(wanted),
            )
        ).rows
    }
    added_ids = [artwork_id for artwork_id in wanted if artwork_id in known and artwork_id not in present]
    for artwork_id in added_ids:
        gateway.add(CollectionItem(collection_id=collection_id, artwork_id=artwork_id))
    if added_ids:
        _touch(gateway, collection_id)
    gateway.commit()

    if not added_ids:
        return []
    rows = gateway.query(
        _items_statement()
        .where(CollectionItem.collection_id == collection_id, CollectionItem.artwork_id.in_(added_ids))
        .order_by(CollectionItem.id)
    ).rows
    return [_shape_item(row) for row in rows]


def parse_id_list(raw: Optional[str]) -> List[int]:
    """Comma-separated ids; entries that are not integers are dropped"""
    ids = []
    for part in (raw or "").split(","):
        part = part.strip()
        if part.isdigit():
            ids.append(int(part))
    return ids


def remove_collection_items(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    collection_id: Optional[int],
    artwork_ids: Optional[List[int]],
) -> int:
    """Bulk removal; returns how many items were removed"""
    collection = _load_collection(gateway, collection_id)
    if not artwork_ids:
        raise ValidationError("At least one artwork ID is required")
    _require_owner(collection, identity)

    removed = gateway.query(
        delete(CollectionItem).where(
            CollectionItem.collection_id == collection_id,
            CollectionItem.artwork_id.in_(list(artwork_ids)),
        )
    ).rowcount
    if removed:
        _touch(gateway, collection_id)
    gateway.commit()
    logger.info(f"{removed} items removed from collection {collection_id}")
    return removed


def delete_collection(gateway: PersistenceGateway, identity: AuthenticatedUser, collection_id: Optional[int]):
    """Delete a collection together with its items"""
    collection = _load_collection(gateway, collection_id)
    _require_owner(collection, identity)
    gateway.query(delete(CollectionItem).where(CollectionItem.collection_id == collection_id))
    gateway.query(delete(Collection).where(Collection.id == collection_id))
    gateway.commit()
    logger.info(f"Collection {collection_id} deleted by user {identity.id}")


def _collection_columns():
    return (
        *Collection.__table__.columns,
        _item_count_expr().label("item_count"),
        _cover_image_expr().label("cover_image"),
    )


def get_collection(gateway: PersistenceGateway, identity: AuthenticatedUser, collection_id: Optional[int]):
    collection = _load_collection(gateway, collection_id)
    _require_readable(collection, identity)
    return gateway.query(select(*_collection_columns()).where(Collection.id == collection_id)).first()


def update_collection(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    collection_id: Optional[int],
    name: Optional[str],
    description: Optional[str] = None,
    is_public: Optional[bool] = None,
):
    if not collection_id or not name:
        raise ValidationError("Collection ID and name are required")
    collection = _load_collection(gateway, collection_id)
    _require_owner(collection, identity)
    values = {"name": name, "description": description, "updated_at": utcnow()}
    if is_public is not None:
        values["is_public"] = is_public
    gateway.query(update(Collection).where(Collection.id == collection_id).values(**values))
    gateway.commit()
    return gateway.query(select(*Collection.__table__.columns).where(Collection.id == collection_id)).first()


def create_collection(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    name: Optional[str],
    description: Optional[str] = None,
    is_public: bool = False,
):
    if not name:
        raise ValidationError("Collection name is required")
    collection = gateway.add(Collection(
        user_id=identity.id,
        name=name,
        description=description,
        is_public=bool(is_public),
    ))
    gateway.commit()
    logger.info(f"Collection {collection.id} created by user {identity.id}")
    return gateway.query(select(*Collection.__table__.columns).where(Collection.id == collection.id)).first()


def list_favorites(gateway: PersistenceGateway, identity: AuthenticatedUser) -> Dict[str, Any]:
    """The requester's collections and the artworks they liked"""
    collections = gateway.query(
        select(*_collection_columns())
        .where(Collection.user_id == identity.id)
        .order_by(Collection.updated_at.desc(), Collection.id.desc())
    ).rows
    liked = gateway.query(
        select(
            *Artwork.__table__.columns,
            User.username,
            User.display_name,
            User.avatar_url,
            Like.created_at.label("favorited_at"),
        )
        .join(Like, Like.artwork_id == Artwork.id)
        .join(User, User.id == Artwork.user_id)
        .where(Like.user_id == identity.id)
        .order_by(Like.created_at.desc(), Like.id.desc())
    ).rows
    for artwork in liked:
        artwork["parameters"] = decode_parameters(artwork.get("parameters"))
    return {"collections": collections, "favorites": liked}
