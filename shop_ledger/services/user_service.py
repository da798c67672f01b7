import logging
from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from shop_ledger.core.config import settings
from shop_ledger.core.errors import (
    ApprovalPending,
    AuthenticationError,
    InvalidOperation,
    NotFound,
    ValidationError,
)
from shop_ledger.core.security import hash_password, verify_password
from shop_ledger.db.store import USERS, DocRef, DocumentStore
from shop_ledger.models.base import utcnow
from shop_ledger.models.user import UserInDB, UserRole

logger = logging.getLogger(__name__)


class UserService:
    """Staff accounts: sign-up, phone/password login and admin approval."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def ensure_admin_user(
        self,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        """
        Make sure the configured admin account exists. Safe to run repeatedly.

        Called once at startup. An existing account with the admin phone is
        promoted back to an approved ADMIN; its password is left alone.
        """
        name = (name or settings.ADMIN_NAME).strip()
        phone = (phone if phone is not None else settings.ADMIN_PHONE).strip()
        password = (password if password is not None else settings.ADMIN_PASSWORD).strip()

        if not phone:
            logger.warning("ADMIN_PHONE is not set; skipping admin bootstrap")
            return

        existing = await self.store.query(USERS, {"phone": phone})
        if not existing:
            if not password:
                logger.warning("ADMIN_PASSWORD is not set; skipping admin bootstrap")
                return

            def create(current):
                return {
                    "name": name,
                    "phone": phone,
                    "password_hash": hash_password(password),
                    "role": UserRole.ADMIN.value,
                    "approved": True,
                    "created_at": utcnow(),
                }

            await self.store.transactional_update(self.store.ref(USERS), create)
            logger.info("Created admin user %s", phone)
            return

        def promote(current):
            if current is None:
                return None
            return {"name": name, "role": UserRole.ADMIN.value, "approved": True}

        await self.store.transactional_update(DocRef(USERS, existing[0]["_id"]), promote)

    async def sign_up(self, name: str, phone: str, password: str) -> UserInDB:
        name, phone, password = name.strip(), phone.strip(), password.strip()
        if not name or not phone or not password:
            raise ValidationError("Name, phone and password are required.")

        if await self.store.query(USERS, {"phone": phone}):
            raise ValidationError("Phone number is already registered.")

        ref = self.store.ref(USERS)
        fields = {
            "name": name,
            "phone": phone,
            "password_hash": hash_password(password),
            "role": UserRole.STAFF.value,
            "approved": False,
            "created_at": utcnow(),
        }
        try:
            await self.store.transactional_update(ref, lambda current: fields)
        except DuplicateKeyError:
            raise ValidationError("Phone number is already registered.")
        logger.info("New staff sign-up %s awaiting approval", phone)
        return UserInDB(_id=ref.id, **fields)

    async def login(self, phone: str, password: str) -> UserInDB:
        matches = await self.store.query(USERS, {"phone": phone.strip()})
        user = UserInDB(**matches[0]) if matches else None
        if user is None or not verify_password(password.strip(), user.password_hash):
            raise AuthenticationError("Invalid phone number or password.")

        if not user.can_sign_in:
            raise ApprovalPending("Your login request is pending admin approval.")

        return user

    async def get_user(self, user_id: str) -> UserInDB:
        doc = await self.store.get(USERS, user_id)
        if doc is None:
            raise NotFound("User not found.")
        return UserInDB(**doc)

    async def list_pending(self) -> List[UserInDB]:
        users = [UserInDB(**doc) for doc in await self.store.query(USERS, {"approved": False})]
        return sorted(users, key=lambda u: u.created_at.timestamp() if u.created_at else 0)

    async def approve(self, user_id: str) -> None:
        def apply(current):
            if current is None:
                raise NotFound("User not found.")
            return {"approved": True}

        await self.store.transactional_update(DocRef(USERS, user_id), apply)
        logger.info("Approved user %s", user_id)

    async def reject(self, user_id: str) -> None:
        user = await self.get_user(user_id)
        if user.role == UserRole.ADMIN:
            raise InvalidOperation("Admin user cannot be rejected.")

        await self.store.delete(DocRef(USERS, user_id))
        logger.info("Rejected user %s", user_id)
