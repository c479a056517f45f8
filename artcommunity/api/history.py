"""
Generation history endpoints
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway, get_gateway
from artcommunity.services import list_history, delete_artwork
from artcommunity.api.dependencies import get_current_user
router = APIRouter()
@router.get("/history")
def history(
    user_id: Optional[str] = Query(None, alias="userId"),
    filter_name: Optional[str] = Query(None, alias="filter", description="all, saved or shared"),
    search: Optional[str] = Query(None, description="Substring of title or prompt"),
    limit: Optional[int] = Query(None, description="Page size"),
    offset: Optional[int] = Query(None, description="Rows to skip"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """The requester's artworks, newest first, grouped by day"""
    return list_history(
        gateway,
        user,
        user_id,
        filter_name=filter_name,
        search=search,
        limit=limit,
        offset=offset
    )
@router.delete("/history")
def remove_from_history(
    artwork_id: Optional[int] = Query(None, alias="artworkId"),
    user_id: Optional[str] = Query(None, alias="userId"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Delete one of the requester's artworks"""
    delete_artwork(gateway, user, artwork_id, user_id)
    return {"success": True}
