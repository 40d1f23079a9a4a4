from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379"
    redis_max_connections: int = 50
    redis_socket_timeout: int = 5

    initial_lookback_days: int = 60
    suggested_view_days: int = 30
    initial_point_limit: int = 1000
    sparse_threshold: int = 30
    fallback_point_limit: int = 30

    store_page_size: int = 500
    reserved_body_keys: list[str] = ["Utc"]

    refetch_debounce_seconds: float = 0.5

    auth_type: str = "azure"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
