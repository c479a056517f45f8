"""
Saved prompt endpoints and prompt taxonomy
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway, get_gateway
from artcommunity.services import (
    list_prompts, create_prompt, update_prompt, delete_prompt, use_prompt,
    get_categories, get_popular_tags
)
from artcommunity.api.dependencies import get_current_user
from artcommunity.api.schemas import PromptCreateRequest, PromptUpdateRequest
logger = logging.getLogger(__name__)
router = APIRouter()
# Taxonomy
@router.get("/prompts/categories")
def categories(
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Prompt categories with usage counts and display colors"""
    return get_categories(gateway)
@router.get("/prompts/tags")
def popular_tags(
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Most frequent prompt tags"""
    return get_popular_tags(gateway)
# CRUD
@router.get("/prompts")
def prompts(
    user_id: Optional[str] = Query(None, alias="userId"),
    tab: Optional[str] = Query(None, description="my-prompts or community"),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    favorites: bool = Query(False),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="updatedAt, createdAt, title or usageCount"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection", description="asc or desc"),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    return list_prompts(
        gateway,
        user,
        user_id,
        tab=tab,
        category=category,
        search=search,
        favorites=favorites,
        sort_by=sort_by,
        sort_direction=sort_direction,
        limit=limit,
        offset=offset
    )
@router.post("/prompts", status_code=201)
def save_prompt(
    request: PromptCreateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    prompt = create_prompt(gateway, user, request.model_dump(by_alias=True))
    return {"success": True, "prompt": prompt}
@router.put("/prompts")
def edit_prompt(
    request: PromptUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    prompt = update_prompt(gateway, user, request.model_dump(by_alias=True))
    return {"success": True, "prompt": prompt}
@router.delete("/prompts")
def remove_prompt(
    id: Optional[int] = Query(None, description="Prompt id"),
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    delete_prompt(gateway, user, id)
    return {"success": True, "message": "Prompt deleted"}
@router.post("/prompts/{prompt_id}/use")
def record_use(
    prompt_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """Count one use of a saved prompt"""
    return use_prompt(gateway, user, prompt_id)
