from typing import Optional

from redis.exceptions import RedisError

from app.core.exceptions import StoreQueryFailed
from app.core.redis_client import get_redis_client
from app.models.user import AuthMethod, User


def auth_key(auth_type: str, auth_id: str) -> str:
    return f"user:auth:{auth_type}:{auth_id}"


class UserStore:
    def __init__(self):
        self.redis = None

    async def initialize(self):
        if not self.redis:
            self.redis = await get_redis_client()

    async def save_user(self, user: User) -> None:
        await self.initialize()
        try:
            async with self.redis.pipeline() as pipe:
                pipe.set(f"user:{user.id}", user.model_dump_json(by_alias=True))
                for method in user.auth_methods:
                    pipe.set(auth_key(method.type, method.id), user.id)
                await pipe.execute()
        except RedisError as e:
            raise StoreQueryFailed(f"Failed to save user {user.id}: {e}") from e

    async def get_user(self, user_id: str) -> Optional[User]:
        await self.initialize()
        try:
            data = await self.redis.get(f"user:{user_id}")
        except RedisError as e:
            raise StoreQueryFailed(f"Failed to read user {user_id}: {e}") from e
        if not data:
            return None
        return User.model_validate_json(data)

    async def find_by_auth(self, auth_type: str, auth_id: str) -> Optional[User]:
        await self.initialize()
        try:
            user_id = await self.redis.get(auth_key(auth_type, auth_id))
        except RedisError as e:
            raise StoreQueryFailed(f"Failed to look up {auth_type} identity: {e}") from e
        if not user_id:
            return None
        return await self.get_user(user_id.decode())

    async def add_auth_method(self, user: User, method: AuthMethod) -> User:
        user.auth_methods.append(method)
        await self.save_user(user)
        return user


_store = UserStore()


def get_user_store() -> UserStore:
    return _store
