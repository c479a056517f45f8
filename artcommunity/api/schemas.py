"""
Pydantic schemas for REST API
Request bodies use the camelCase field names of the web client
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Dict, Any
from datetime import datetime
class CamelModel(BaseModel):
    """Base schema accepting both camelCase aliases and field names"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
# Artwork Schemas
class PublishArtworkRequest(CamelModel):
    """Request schema for publishing an artwork"""
    user_id: Optional[Any] = Field(None, alias="userId", description="Id of the publishing user")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="URL of the generated image")
    prompt: Optional[str] = Field(None, description="Prompt used for generation")
    title: Optional[str] = Field(None, description="Artwork title")
    description: Optional[str] = Field(None, description="Artwork description")
    model: Optional[str] = Field(None, description="Generation model identifier")
    parameters: Optional[Any] = Field(None, description="Generation parameters, object or JSON string")
class PublishArtworkResponse(BaseModel):
    """Response schema for artwork publishing"""
    success: bool = True
    message: str
    artworkId: int
# Collection Schemas
class CollectionItemRequest(CamelModel):
    """Collection/artwork pair"""
    collection_id: Optional[int] = Field(None, alias="collectionId")
    artwork_id: Optional[int] = Field(None, alias="artworkId")
class CollectionBulkAddRequest(CamelModel):
    """Request schema for adding several artworks to a collection"""
    collection_id: Optional[int] = Field(None, alias="collectionId")
    artwork_ids: Optional[List[int]] = Field(None, alias="artworkIds")
class CollectionCreateRequest(CamelModel):
    """Request schema for creating a collection"""
    name: Optional[str] = Field(None, description="Collection name", max_length=255)
    description: Optional[str] = None
    is_public: bool = Field(False, alias="isPublic")
class CollectionUpdateRequest(CamelModel):
    """Request schema for renaming a collection"""
    collection_id: Optional[int] = Field(None, alias="collectionId")
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    is_public: Optional[bool] = Field(None, alias="isPublic")
# Prompt Schemas
class PromptCreateRequest(CamelModel):
    """Request schema for saving a prompt"""
    user_id: Optional[Any] = Field(None, alias="userId")
    title: Optional[str] = Field(None, max_length=255)
    text: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    negative: Optional[str] = None
    notes: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    is_public: bool = Field(False, alias="isPublic")
    favorite: Optional[bool] = None
    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(",") if tag.strip()]
        return v
class PromptUpdateRequest(PromptCreateRequest):
    """Request schema for editing a prompt"""
    prompt_id: Optional[int] = Field(None, alias="promptId")
# Auth Schemas
class RegisterRequest(CamelModel):
    """Request schema for registration"""
    username: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName", max_length=255)
class LoginRequest(CamelModel):
    """Request schema for login"""
    username_or_email: Optional[str] = Field(None, alias="usernameOrEmail")
    password: Optional[str] = None
class ProfileUpdateRequest(CamelModel):
    """Partial profile update; omitted fields keep their values"""
    display_name: Optional[str] = Field(None, alias="displayName", max_length=255)
    bio: Optional[str] = None
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    email: Optional[str] = Field(None, max_length=255)
class ChangePasswordRequest(CamelModel):
    """Request schema for password change"""
    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")
# Generation proxy Schemas
class ProxyRequest(BaseModel):
    """Generation request relayed to the external API"""
    endpoint: str = Field(..., description="Upstream path, e.g. /v1/flux-pro-1.1", min_length=1)
    params: Any = Field(default_factory=dict, description="Opaque upstream payload")
    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v):
        if not v.strip():
            raise ValueError("Endpoint cannot be empty")
        if "://" in v:
            raise ValueError("Endpoint must be a path on the generation API")
        return v.strip()
# Error Schemas
class ErrorResponse(BaseModel):
    """Standard error response schema"""
    error: Any = Field(..., description="Error message or upstream error body")
    message: Optional[str] = Field(None, description="Detailed error information")
# Status Schemas
class HealthCheckResponse(BaseModel):
    """Health check response schema"""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Response timestamp")
    version: str = Field(..., description="API version")
