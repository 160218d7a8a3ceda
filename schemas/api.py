"""
Pydantic schemas for backend request/response models
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Generic, TypeVar
import enum
import re

T = TypeVar("T")

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6


def _check_email(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("email is required")
    if not EMAIL_PATTERN.fullmatch(v):
        raise ValueError("email is not a valid address")
    return v


def _check_password(v: str) -> str:
    if not v:
        raise ValueError("password is required")
    if len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return v


# ============================================================================
# Pagination Schemas
# ============================================================================

class Pagination(BaseModel):
    """Pagination block of list responses"""
    total: int = 0
    limit: int = 10
    offset: int = 0
    has_more: bool = Field(False, alias="hasMore")

    class Config:
        populate_by_name = True


class PaginatedResponse(BaseModel, Generic[T]):
    """Envelope: {data: T[], pagination: {...}}"""
    data: List[T] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_is_empty(cls, v):
        return [] if v is None else v


# ============================================================================
# Health Schemas
# ============================================================================

class HealthStatus(BaseModel):
    """Unauthenticated liveness response"""
    status: str

    @property
    def ok(self) -> bool:
        return self.status == "ok"


# ============================================================================
# Auth Schemas
# ============================================================================

class Identity(BaseModel):
    """The authenticated operator"""
    id: str
    email: str
    name: str = ""
    auth_provider: str = Field("local", alias="authProvider")

    class Config:
        populate_by_name = True


class AuthResponse(BaseModel):
    """Login/register response"""
    token: str = Field(..., min_length=1)
    user: Identity
    expires_in: int = Field(..., gt=0)


class TokenInfo(BaseModel):
    """Token-info response; also used as the refresh result"""
    token: str = Field(..., min_length=1)
    expires_in: int = Field(..., gt=0)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v


# ============================================================================
# User Schemas
# ============================================================================

class UserSummary(BaseModel):
    id: str
    email: str
    name: str = ""


class UserWithRoles(BaseModel):
    """GET /users/{id} response"""
    user: UserSummary
    roles: List[str] = Field(default_factory=list)

    @field_validator("roles", mode="before")
    @classmethod
    def null_roles_is_empty(cls, v):
        return [] if v is None else v


class RoleOperation(str, enum.Enum):
    ADD = "add"
    REMOVE = "remove"


class RoleUpdate(BaseModel):
    role: str = Field(..., min_length=1)
    operation: RoleOperation

    class Config:
        use_enum_values = True


class CreateUserRequest(BaseModel):
    """Admin-side user creation"""
    email: str
    password: str
    name: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)


# ============================================================================
# Tenant Schemas
# ============================================================================

class Tenant(BaseModel):
    """Branding/tenant context"""
    id: str
    name: str
    logo_url: Optional[str] = Field(None, alias="logoUrl")
    primary_color: Optional[str] = Field(None, alias="primaryColor")
    secondary_color: Optional[str] = Field(None, alias="secondaryColor")
    domain: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True


# ============================================================================
# Upload Schemas
# ============================================================================

class PreviewUpload(BaseModel):
    """POST /uploads/preview response"""
    preview_url: str = Field(..., alias="previewUrl", min_length=1)
    columns: List[str] = Field(default_factory=list)
    preview: Optional[List[List[Any]]] = None
    suggested_mappings: Optional[Dict[str, int]] = Field(None, alias="suggestedMappings")

    class Config:
        populate_by_name = True

    @field_validator("columns", mode="before")
    @classmethod
    def null_columns_is_empty(cls, v):
        return [] if v is None else v


class PreviewData(BaseModel):
    """GET /uploads/preview-data response; the first row is the header row"""
    data: List[List[Any]] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_is_empty(cls, v):
        return [] if v is None else v


class ProcessRequest(BaseModel):
    """POST /uploads/process body"""
    preview_url: str = Field(..., alias="previewUrl")
    data_source_id: str = Field(..., alias="dataSourceId")
    date_format: str = Field(..., alias="dateFormat")
    column_mappings: Dict[str, int] = Field(..., alias="columnMappings")
    create_import_record: bool = Field(True, alias="createImportRecord")
    filename: str
    schema_definition: Optional[Dict[str, Any]] = Field(None, alias="schemaDefinition")

    class Config:
        populate_by_name = True

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
