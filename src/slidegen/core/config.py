from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # App/Env
    ENV: str = "dev"
    APP_NAME: str = "slidegen"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # DB
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/slidegen"

    # Auth
    JWT_PUBLIC_KEY: Optional[str] = None

    # Generative model (OpenAI-compatible /chat/completions)
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_API_KEY: Optional[str] = None  # unset -> offline mode
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT_SEC: float = 120.0

    OUTLINE_MAX_TOKENS: int = 1000
    OUTLINE_TEMPERATURE: float = 0.0
    LAYOUT_MAX_TOKENS: int = 8192
    LAYOUT_TEMPERATURE: float = 0.7
    ALT_MAX_TOKENS: int = 200
    ALT_TEMPERATURE: float = 0.4

    # Images
    IMAGE_PROVIDER_TEMPLATE: str = "https://picsum.photos/seed/{seed}/{width}/{height}"
    IMAGE_SEED_MIN: int = 1
    IMAGE_SEED_MAX: int = 1000
    IMAGE_WIDTH: int = 1024
    IMAGE_HEIGHT: int = 768
    IMAGE_FALLBACK_URL: str = "https://placehold.co/1024x768?text=Image"
    IMAGE_PROBE_TIMEOUT_SEC: float = 10.0
    IMAGE_CONCURRENCY: int = 8  # cap for the per-deck image fan-out

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

settings = Settings()
