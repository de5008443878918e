from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "BeautyStore"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "beauty_store"

    # Logging (empty LOG_LEVEL = DEBUG when DEBUG is set, else INFO)
    LOG_LEVEL: str = ""
    LOG_COLOR: bool = True
    LOG_QUIET: str = "pymongo,httpx,httpcore,openai"  # CSV, held at WARNING or above

    # Redis (empty = caching disabled)
    REDIS_URL: str = ""
    redis_timeout_s: float = 2.0  # connect and command timeout

    # Cache config
    filter_options_cache_ttl: int = 10 * 60     # 10 minutes, invalidated on catalog writes
    filter_options_cache_key: str = "catalog:filter_options"

    # Search pagination
    search_default_limit: int = 10
    search_max_limit: int = 100

    # OpenAI (reranker)
    OPENAI_API_KEY: str = ""
    OPENAI_RERANK_MODEL: str = "gpt-4o-mini"
    openai_timeout_s: int = 30  # seconds

    # CORS (CSV)
    ALLOWED_ORIGINS: str = ""

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def quiet_loggers(self) -> list[str]:
        return [n.strip() for n in self.LOG_QUIET.split(",") if n.strip()]

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
