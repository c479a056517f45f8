"""
Generation proxy endpoints
Relay requests to the external image-synthesis API with the service key
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.errors import ValidationError
from artcommunity.generation.bfl_client import BFLClient, ProxyResponse
from artcommunity.api.dependencies import get_current_user, get_generation_client
from artcommunity.api.schemas import ProxyRequest
logger = logging.getLogger(__name__)
router = APIRouter()
def relay(response: ProxyResponse) -> JSONResponse:
    """Upstream body verbatim on success, wrapped in ``error`` otherwise"""
    if response.ok:
        return JSONResponse(status_code=response.status_code, content=response.body)
    return JSONResponse(status_code=response.status_code, content={"error": response.body})
@router.post("/bfl-proxy")
async def bfl_proxy(
    request: ProxyRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    client: BFLClient = Depends(get_generation_client)
):
    """Submit a generation request"""
    logger.info(f"User {user.id} submitting generation to {request.endpoint}")
    return relay(await client.forward(request.endpoint, request.params))
@router.get("/bfl-result")
async def bfl_result(
    id: Optional[str] = Query(None, description="Upstream request id"),
    user: AuthenticatedUser = Depends(get_current_user),
    client: BFLClient = Depends(get_generation_client)
):
    """Poll the result of a submitted generation"""
    if not id:
        raise ValidationError("Request ID is required")
    return relay(await client.get_result(id))
