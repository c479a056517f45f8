"""
Generation statistics endpoint
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway, get_gateway
from artcommunity.services import get_statistics
from artcommunity.api.dependencies import get_current_user
router = APIRouter()
@router.get("/statistics")
def statistics(
    user_id: Optional[str] = Query(None, alias="userId"),
    time_range: Optional[str] = Query(None, alias="timeRange", description="day, week, month or year"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Generation counts, model usage and timing for the requester"""
    return get_statistics(gateway, user, user_id, time_range=time_range)
