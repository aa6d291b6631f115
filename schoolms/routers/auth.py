import logging
from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from schoolms.core.security import (
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
)
from schoolms.core.permissions import ALL_PERMISSIONS
from schoolms.models.auth import User
from schoolms.models.base import utcnow
from schoolms.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RefreshRequest,
    PasswordChangeRequest,
    TokenResponse,
    CurrentUserResponse,
    UserWithRoles,
    UserRead,
)
from schoolms.deps import CurrentUser, DbSession, LinkedStudents, user_permission_codes
from schoolms.models.enums import UserStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_tokens(user: User) -> TokenResponse:
    claims = {"sub": str(user.id)}
    return TokenResponse(
        access_token=create_access_token(data=claims),
        refresh_token=create_refresh_token(data=claims),
    )


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db: DbSession):
    result = await db.execute(
        select(User).where(
            (User.phone == credentials.phone_or_email) | (User.email == credentials.phone_or_email)
        )
    )
    user = result.scalars().first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect phone/email or password",
        )

    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active. Please contact administrator.",
        )

    user.last_login_at = utcnow()
    await db.commit()

    logger.info(f"User {user.id} logged in")
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(data: RefreshRequest, db: DbSession):
    payload = decode_refresh_token(data.refresh_token)
    if payload is None or payload.get("sub") is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired refresh token")

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if not user or user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return _issue_tokens(user)


@router.post("/register", response_model=UserRead)
async def register(data: RegisterRequest, db: DbSession):
    existing_phone = await db.execute(select(User).where(User.phone == data.phone))
    if existing_phone.scalars().first():
        raise HTTPException(status_code=400, detail="Phone number already registered")

    if data.email:
        existing_email = await db.execute(select(User).where(User.email == data.email))
        if existing_email.scalars().first():
            raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        phone=data.phone,
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        is_super_admin=False,
        status=UserStatus.ACTIVE,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    return UserRead.model_validate(user)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(user: CurrentUser, students: LinkedStudents):
    if user.is_super_admin:
        permissions = [p["code"] for p in ALL_PERMISSIONS]
    else:
        permissions = sorted(user_permission_codes(user))

    return CurrentUserResponse(
        user=UserWithRoles.model_validate(user),
        permissions=permissions,
        linked_student_ids=[s.id for s in students],
    )


@router.post("/change-password", response_model=dict)
async def change_password(data: PasswordChangeRequest, user: CurrentUser, db: DbSession):
    if not verify_password(data.current_password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.hashed_password = hash_password(data.new_password)
    await db.commit()
    return {"message": "Password changed successfully"}
