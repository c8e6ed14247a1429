from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from functools import lru_cache
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = "LMS"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    @property
    def debug(self) -> bool:
        return self.DEBUG

    # API Settings
    API_V1_PREFIX: str = "/api/v1"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Supabase Configuration
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    @property
    def supabase_url(self) -> str:
        return self.SUPABASE_URL

    @property
    def supabase_key(self) -> str:
        return self.SUPABASE_KEY

    @property
    def supabase_service_role_key(self) -> Optional[str]:
        return self.SUPABASE_SERVICE_ROLE_KEY

    # Localization
    DEFAULT_LOCALE: str = "en"
    LANG_PATH: Path = PACKAGE_DIR / "lang"
    I18N_CACHE_TTL: int = 3600  # seconds

    # Plugins
    LMS_VERSION: int = 2024011500
    PLUGINS_PATH: Path = PACKAGE_DIR / "plugins"
    PLUGIN_STATE_FILE: Path = Path("storage/plugins/enabled.json")
    PLUGIN_CACHE_TTL: int = 3600
    BLOCK_CACHE_TTL: int = 300

    # CORS Settings
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def host(self) -> str:
        return self.HOST

    @property
    def port(self) -> int:
        return self.PORT

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
