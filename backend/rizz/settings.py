from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, frozen=True, populate_by_name=True)

    PORT: int = 8000
    BUILD_TAG: str = "TAGALOG-RIZZ"

    # CORS, comma separated
    ALLOWED_ORIGINS: str = ""

    # OpenRouter chat completions
    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_MODEL: str = "deepseek/deepseek-chat:free"

    # Outbound wait must stay below the ~10s limit of the serverless caller
    GENERATION_TIMEOUT_SEC: float = 8.0
    GENERATION_MAX_TOKENS: int = 800
    GENERATION_TEMPERATURE: float = 0.9

    # Sent as HTTP-Referer / X-Title (OpenRouter app attribution)
    APP_URL: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("APP_URL", "NEXT_PUBLIC_APP_URL"),
    )
    APP_TITLE: str = "Tagalog Rizz Chat"

    # Supabase (auth + favorites)
    SUPABASE_URL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    )
    SUPABASE_ANON_KEY: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"),
    )
    # Defaults to sb-<project-ref>-auth-token
    SUPABASE_AUTH_COOKIE: str | None = None


settings = Settings()
