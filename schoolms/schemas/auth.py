from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from schoolms.models.enums import UserStatus

MIN_PASSWORD_LENGTH = 6


class LoginRequest(BaseModel):
    phone_or_email: str
    password: str


class RegisterRequest(BaseModel):
    phone: str
    email: Optional[EmailStr] = None
    full_name: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class PermissionRead(BaseModel):
    id: int
    code: str
    module: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RoleRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_system: bool
    created_at: datetime

    class Config:
        from_attributes = True


class RoleWithPermissions(RoleRead):
    permissions: list[PermissionRead] = []


class RoleCreate(BaseModel):
    name: str
    description: Optional[str] = None
    permission_ids: list[int] = []


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    permission_ids: Optional[list[int]] = None


class UserRead(BaseModel):
    id: int
    phone: str
    email: Optional[str] = None
    full_name: str
    is_super_admin: bool
    status: UserStatus
    last_login_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserWithRoles(UserRead):
    roles: list[RoleRead] = []


class UserCreate(BaseModel):
    phone: str
    email: Optional[EmailStr] = None
    full_name: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    is_super_admin: bool = False
    status: UserStatus = UserStatus.ACTIVE
    role_ids: list[int] = []


class UserUpdate(BaseModel):
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    password: Optional[str] = Field(None, min_length=MIN_PASSWORD_LENGTH)
    status: Optional[UserStatus] = None


class UserRolesUpdate(BaseModel):
    role_ids: list[int]


class CurrentUserResponse(BaseModel):
    user: UserWithRoles
    permissions: list[str]
    # Students reachable through the portal: the own record and, for parents, linked children
    linked_student_ids: list[int] = []
