"""
Artwork record handlers: publish, owner listing, likes and deletion
"""
from sqlalchemy import delete, func, or_, select, update
from typing import Any, Dict, Optional
import json
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import Artwork, ArtworkTag, CollectionItem, Comment, Like, utcnow
from artcommunity.errors import AuthorizationError, NotFoundError, ValidationError
from artcommunity.services.feed import decode_parameters

logger = logging.getLogger(__name__)

FALLBACK_LENGTH = 100
UNTITLED = "Untitled"
NO_DESCRIPTION = "No description"


def normalize_parameters(parameters: Any) -> str:
    """
    Serialize generation parameters to JSON text
    Objects are dumped directly; strings that already hold JSON are parsed
    and re-dumped so both forms decode to the same structure. Any other
    string is stored as a JSON string value.
    """
    if parameters is None:
        return "{}"
    if isinstance(parameters, str):
        try:
            return json.dumps(json.loads(parameters))
        except ValueError:
            return json.dumps(parameters)
    return json.dumps(parameters)


def same_user(identity: AuthenticatedUser, user_id: Any) -> bool:
    return user_id is not None and str(identity.id) == str(user_id).strip()


def _fallback(value: Optional[str], prompt: Optional[str], placeholder: str) -> str:
    if value:
        return value
    if prompt:
        return prompt[:FALLBACK_LENGTH]
    return placeholder


def publish_artwork(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    user_id: Any,
    image_url: Optional[str],
    prompt: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    model: Optional[str] = None,
    parameters: Any = None,
) -> int:
    """
    Make an artwork public, creating it if needed
    An existing row with the same (user_id, image_url) is flipped to public
    instead of inserting a duplicate. The check and the write are separate
    statements, so concurrent identical requests can still double-insert.
    Returns:
        Id of the affected artwork
    """
    if user_id is None or user_id == "" or not image_url:
        raise ValidationError("userId and imageUrl are required")
    if not same_user(identity, user_id):
        raise AuthorizationError("Access denied")

    existing = gateway.query(
        select(Artwork.id)
        .where(Artwork.user_id == identity.id, Artwork.image_url == image_url)
        .order_by(Artwork.id)
        .limit(1)
    ).first()

    if existing:
        artwork_id = existing["id"]
        gateway.query(
            update(Artwork)
            .where(Artwork.id == artwork_id)
            .values(is_public=True, updated_at=utcnow())
        )
        logger.info(f"Artwork {artwork_id} made public by user {identity.id}")
    else:
        artwork = gateway.add(Artwork(
            user_id=identity.id,
            title=_fallback(title, prompt, UNTITLED),
            description=_fallback(description, prompt, NO_DESCRIPTION),
            image_url=image_url,
            prompt=prompt,
            model=model,
            parameters=normalize_parameters(parameters),
            is_public=True,
        ))
        artwork_id = artwork.id
        logger.info(f"Artwork {artwork_id} published by user {identity.id}")

    gateway.commit()
    return artwork_id


def list_user_artworks(gateway: PersistenceGateway, identity: AuthenticatedUser, user_id: Any) -> list:
    """All artworks of the requester, newest first"""
    if user_id is None or user_id == "":
        raise ValidationError("User ID is required")
    if not same_user(identity, user_id):
        raise AuthorizationError("You can only view your own artworks")
    rows = gateway.query(
        select(*Artwork.__table__.columns)
        .where(Artwork.user_id == identity.id)
        .order_by(Artwork.created_at.desc(), Artwork.id.desc())
    ).rows
    for row in rows:
        row["parameters"] = decode_parameters(row.get("parameters"))
    return rows


def visible_to(identity: AuthenticatedUser):
    """Artworks the requester may see: public ones and their own"""
    return or_(Artwork.is_public.is_(True), Artwork.user_id == identity.id)


def toggle_like(gateway: PersistenceGateway, identity: AuthenticatedUser, artwork_id: int) -> Dict[str, Any]:
    """Like or unlike an artwork visible to the requester"""
    artwork = gateway.query(
        select(Artwork.id).where(Artwork.id == artwork_id, visible_to(identity))
    ).first()
    if artwork is None:
        raise NotFoundError("Artwork not found")

    removed = gateway.query(
        delete(Like).where(Like.artwork_id == artwork_id, Like.user_id == identity.id)
    ).rowcount
    if not removed:
        gateway.add(Like(artwork_id=artwork_id, user_id=identity.id))
    gateway.commit()

    likes = gateway.query(select(func.count(Like.id)).where(Like.artwork_id == artwork_id)).scalar(0)
    return {"liked": not removed, "likes_count": int(likes)}


def delete_artwork(gateway: PersistenceGateway, identity: AuthenticatedUser, artwork_id: Any, user_id: Any):
    """
    Delete one of the requester's artworks
    Likes, comments, tags and collection memberships are deleted in the same
    transaction.
    """
    if not artwork_id or user_id is None or user_id == "":
        raise ValidationError("Artwork ID and user ID are required")
    if not same_user(identity, user_id):
        raise AuthorizationError("You can only delete your own artworks")
    owner = gateway.query(select(Artwork.user_id).where(Artwork.id == artwork_id)).first()
    if owner is None:
        raise NotFoundError("Artwork not found")
    if owner["user_id"] != identity.id:
        raise AuthorizationError("You can only delete your own artworks")

    for model in (Like, Comment, ArtworkTag, CollectionItem):
        gateway.query(delete(model).where(model.artwork_id == artwork_id))
    gateway.query(delete(Artwork).where(Artwork.id == artwork_id))
    gateway.commit()
    logger.info(f"Artwork {artwork_id} deleted by user {identity.id}")
