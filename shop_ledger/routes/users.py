from fastapi import APIRouter, Depends

from shop_ledger.core.auth import require_admin
from shop_ledger.db.mongo import get_store
from shop_ledger.models.user import UserInDB, UserResponse
from shop_ledger.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/pending", response_model=list[UserResponse])
async def list_pending_users(
    admin: UserInDB = Depends(require_admin),
    store = Depends(get_store)
):
    """Staff sign-ups waiting for approval, oldest first."""
    users = await UserService(store).list_pending()
    return [UserResponse.model_validate(user.model_dump()) for user in users]


@router.post("/{user_id}/approve")
async def approve_user(
    user_id: str,
    admin: UserInDB = Depends(require_admin),
    store = Depends(get_store)
):
    await UserService(store).approve(user_id)
    return {"success": True}


@router.delete("/{user_id}")
async def reject_user(
    user_id: str,
    admin: UserInDB = Depends(require_admin),
    store = Depends(get_store)
):
    """Reject a sign-up request by deleting the account."""
    await UserService(store).reject(user_id)
    return {"success": True}
