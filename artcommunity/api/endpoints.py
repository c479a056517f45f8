"""
REST API endpoints: health, community feed and artworks
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging
from datetime import datetime
from artcommunity.config.settings import settings
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway, get_gateway
from artcommunity.services import get_community_feed, publish_artwork, list_user_artworks, toggle_like
from artcommunity.api.dependencies import get_current_user
from artcommunity.api.schemas import HealthCheckResponse, PublishArtworkRequest, PublishArtworkResponse
logger = logging.getLogger(__name__)
# Create router
router = APIRouter()
# Health check endpoints
@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Basic health check endpoint"""
    return HealthCheckResponse(
        status="healthy",
        timestamp=datetime.now(),
        version=settings.API_VERSION
    )
# Community feed
@router.get("/community")
def community_feed(
    limit: Optional[int] = Query(None, description="Page size"),
    offset: Optional[int] = Query(None, description="Rows to skip"),
    category: Optional[str] = Query(None, description="Tag name or 'all'"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="newest, trending or popular"),
    search: Optional[str] = Query(None, description="Substring of title or description"),
    model_type: Optional[str] = Query(None, alias="modelType", description="Model identifier or 'all'"),
    time_range: Optional[str] = Query(None, alias="timeRange", description="today, week or month"),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """
    Public artworks with filters, sorting and pagination
    Open to anonymous visitors
    """
    return get_community_feed(
        gateway,
        limit=limit,
        offset=offset,
        category=category,
        sort_by=sort_by,
        search=search,
        model_type=model_type,
        time_range=time_range
    )
# Artwork endpoints
@router.post("/artwork/publish", response_model=PublishArtworkResponse)
def publish(
    request: PublishArtworkRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Publish a generated image to the community feed"""
    artwork_id = publish_artwork(
        gateway,
        user,
        user_id=request.user_id,
        image_url=request.image_url,
        prompt=request.prompt,
        title=request.title,
        description=request.description,
        model=request.model,
        parameters=request.parameters
    )
    return PublishArtworkResponse(message="Artwork published successfully", artworkId=artwork_id)
@router.get("/user/artworks")
def user_artworks(
    user_id: Optional[str] = Query(None, alias="userId"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """The requester's own artworks, newest first"""
    return {"artworks": list_user_artworks(gateway, user, user_id)}
@router.post("/artworks/{artwork_id}/like")
def like_artwork(
    artwork_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Toggle the requester's like"""
    return toggle_like(gateway, user, artwork_id)
