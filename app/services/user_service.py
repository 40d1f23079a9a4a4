import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from app.config.settings import get_settings
from app.core.auth import decode_client_principal
from app.core.exceptions import NotFound, ValidationFailed
from app.models.user import AuthMethod, CurrentUser, SignupRequest, User
from app.storage.user_store import get_user_store

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store=None):
        self.store = store or get_user_store()
        self.settings = get_settings()

    async def current_user(self, principal_header: Optional[str]) -> CurrentUser:
        auth_type = self.settings.auth_type

        if not principal_header:
            logger.info("No client principal found in headers")
            return CurrentUser(authenticated=False, auth_type=auth_type)

        principal = decode_client_principal(principal_header)
        if not principal.auth_id:
            return CurrentUser(authenticated=False, auth_type=auth_type)

        user = await self.store.find_by_auth(auth_type, principal.auth_id)
        if user:
            return CurrentUser(authenticated=True, user=user)

        return CurrentUser(
            authenticated=False,
            auth_type=auth_type,
            auth_id=principal.auth_id,
            suggested_email=principal.email,
            suggested_name=principal.name,
        )

    async def signup(self, request: SignupRequest) -> User:
        if not request.email_address:
            raise ValidationFailed("Email address is required")

        user = User(
            id=str(uuid.uuid4()),
            real_name=request.real_name or "",
            email_address=request.email_address,
            auth_methods=[AuthMethod(type=request.auth_type, id=request.auth_id)]
            if request.auth_type and request.auth_id
            else [],
            created_at=datetime.now(timezone.utc),
        )
        await self.store.save_user(user)

        logger.info(f"Created user {user.id} ({request.auth_type})")
        return user

    async def add_auth_method(self, user_id: str, auth_type: str, auth_id: str) -> User:
        if await self.store.find_by_auth(auth_type, auth_id):
            raise ValidationFailed(
                "This authentication method is already linked to another account"
            )

        user = await self.store.get_user(user_id)
        if not user:
            raise NotFound(f"User {user_id} not found")

        user = await self.store.add_auth_method(
            user, AuthMethod(type=auth_type, id=auth_id)
        )
        logger.info(f"Linked {auth_type} identity to user {user_id}")
        return user


_service = UserService()


def get_user_service() -> UserService:
    return _service
