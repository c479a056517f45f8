"""
Collection endpoints: collection items, collections and favorites
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway, get_gateway
from artcommunity.services import (
    get_collection_items, remove_collection_item, add_collection_item, add_collection_items,
    remove_collection_items, delete_collection, parse_id_list,
    get_collection, update_collection, create_collection, list_favorites
)
from artcommunity.api.dependencies import get_current_user
from artcommunity.api.schemas import (
    CollectionItemRequest, CollectionBulkAddRequest,
    CollectionCreateRequest, CollectionUpdateRequest
)
logger = logging.getLogger(__name__)
router = APIRouter()
# Collection items
@router.get("/collection-items")
def list_items(
    collection_id: Optional[int] = Query(None, alias="collectionId"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Items of a collection, most recently added first"""
    return {"items": get_collection_items(gateway, user, collection_id)}
@router.post("/collection-items", status_code=200)
def add_item(
    request: CollectionItemRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Add one artwork to a collection"""
    item = add_collection_item(gateway, user, request.collection_id, request.artwork_id)
    created = item.pop("created")
    message = "Artwork added to collection" if created else "Artwork is already in the collection"
    return {"success": True, "message": message, "created": created, "item": item}
@router.delete("/collection-items")
def remove_item(
    request: CollectionItemRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Remove an artwork from a collection"""
    remove_collection_item(gateway, user, request.collection_id, request.artwork_id)
    return {"success": True, "message": "Artwork removed from collection"}
@router.post("/collection-items/remove")
def remove_item_alias(
    request: CollectionItemRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """POST form of the removal"""
    return remove_item(request, user, gateway)
# Collections
@router.get("/collection")
def collection_info(
    collection_id: Optional[int] = Query(None, alias="collectionId"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Collection details with item count and cover image"""
    return {"collection": get_collection(gateway, user, collection_id)}
@router.put("/collection")
def edit_collection(
    request: CollectionUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    collection = update_collection(
        gateway,
        user,
        request.collection_id,
        request.name,
        description=request.description,
        is_public=request.is_public
    )
    return {"success": True, "collection": collection}
@router.post("/collection")
def bulk_add(
    request: CollectionBulkAddRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Add several artworks at once; pairs already present are skipped"""
    items = add_collection_items(gateway, user, request.collection_id, request.artwork_ids)
    return {"success": True, "added": len(items), "items": items}
@router.delete("/collection")
def bulk_remove(
    collection_id: Optional[int] = Query(None, alias="collectionId"),
    artwork_ids: Optional[str] = Query(None, alias="artworkIds", description="Comma-separated artwork ids"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """
    Remove the listed artworks from a collection
    Without artworkIds the whole collection is deleted
    """
    if artwork_ids:
        removed = remove_collection_items(gateway, user, collection_id, parse_id_list(artwork_ids))
        return {"success": True, "removed": removed}
    delete_collection(gateway, user, collection_id)
    return {"success": True}
# Favorites
@router.get("/favorites")
def favorites(
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """The requester's collections and liked artworks"""
    return list_favorites(gateway, user)
@router.post("/favorites", status_code=201)
def new_collection(
    request: CollectionCreateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    collection = create_collection(
        gateway,
        user,
        request.name,
        description=request.description,
        is_public=request.is_public
    )
    return {"success": True, "collection": collection}
@router.delete("/favorites")
def remove_favorite(
    collection_id: Optional[int] = Query(None, alias="collectionId"),
    artwork_id: Optional[int] = Query(None, alias="artworkId"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Remove one artwork from a collection, or the collection itself when no artworkId is given"""
    if artwork_id:
        remove_collection_item(gateway, user, collection_id, artwork_id)
    else:
        delete_collection(gateway, user, collection_id)
    return {"success": True}
