from fastapi import APIRouter, Depends, status

from shop_ledger.core.auth import create_access_token, get_current_user
from shop_ledger.db.mongo import get_store
from shop_ledger.models.user import (
    LoginRequest,
    SignUpRequest,
    TokenResponse,
    UserInDB,
    UserResponse,
)
from shop_ledger.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(user_data: SignUpRequest, store = Depends(get_store)):
    """Request a staff account. It stays locked until the admin approves it."""
    user = await UserService(store).sign_up(user_data.name, user_data.phone, user_data.password)
    return UserResponse.model_validate(user.model_dump())


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, store = Depends(get_store)):
    """Login with phone number and password."""
    user = await UserService(store).login(credentials.phone, credentials.password)
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.model_validate(user.model_dump())
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserInDB = Depends(get_current_user)):
    """Get current user details."""
    return UserResponse.model_validate(current_user.model_dump())
