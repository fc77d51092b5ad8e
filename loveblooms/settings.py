# loveblooms/settings.py
from __future__ import annotations
from typing import List, Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import os

def _parse_cors(v: Optional[str | List[str]]) -> List[str]:
    """
    Accept JSON array (e.g. '["http://localhost:3000"]') or
    comma-separated string ('http://localhost:3000,http://127.0.0.1:3000').
    """
    if v is None:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    if isinstance(v, list):
        return v
    s = v.strip()
    if not s:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    if s.startswith("["):
        try:
            parsed = json.loads(s)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            return parsed
    # fallback: comma separated
    return [p.strip().strip("[]\"'") for p in s.split(",") if p.strip()]

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",   # ignore unknown env keys instead of raising
    )

    # --- API ---
    api_host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("API_HOST",))
    api_port: int = Field(default=8000,        validation_alias=AliasChoices("API_PORT",))
    cors_origins_raw: Optional[str | List[str]] = Field(
        default=None, validation_alias=AliasChoices("CORS_ORIGINS",)
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL",))
    site_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("SITE_URL", "NEXT_PUBLIC_SITE_URL")
    )

    # --- Storage ---
    # "firestore" in production, "memory" for tests and local hacking
    store_backend: str = Field(default="firestore", validation_alias=AliasChoices("STORE_BACKEND",))
    firebase_project_id: str = Field(
        default="loveblooms",
        validation_alias=AliasChoices("FIREBASE_PROJECT_ID",)
    )
    google_application_credentials: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_APPLICATION_CREDENTIALS",)
    )

    # --- Stripe ---
    stripe_secret_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("STRIPE_SECRET_KEY",)
    )
    stripe_webhook_secret: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("STRIPE_WEBHOOK_SECRET",)
    )
    currency: str = Field(default="gbp", validation_alias=AliasChoices("CURRENCY",))

    # --- Delivery / catalog defaults ---
    default_delivery_fee: float = Field(
        default=4.99, validation_alias=AliasChoices("DEFAULT_DELIVERY_FEE",)
    )
    free_delivery_threshold: float = Field(
        default=50.00, validation_alias=AliasChoices("FREE_DELIVERY_THRESHOLD",)
    )
    low_stock_threshold: int = Field(
        default=20, validation_alias=AliasChoices("LOW_STOCK_THRESHOLD",)
    )

    # --- OpenRouter / AI assistant ---
    openrouter_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("OPENROUTER_API_KEY",)
    )
    openrouter_model: str = Field(
        default="google/gemini-2.5-flash",
        validation_alias=AliasChoices("OPENROUTER_MODEL",)
    )
    # accept either OPENROUTER_VISION_MODEL or AI_VISION_MODEL
    openrouter_vision_model: str = Field(
        default="google/gemini-2.5-flash",
        validation_alias=AliasChoices("OPENROUTER_VISION_MODEL", "AI_VISION_MODEL")
    )
    ai_max_retries: int = Field(default=2, validation_alias=AliasChoices("AI_MAX_RETRIES",))
    ai_timeout_seconds: float = Field(
        default=30.0, validation_alias=AliasChoices("AI_TIMEOUT_SECONDS",)
    )

    # --- Admin ---
    admin_username: str = Field(default="admin", validation_alias=AliasChoices("ADMIN_USERNAME",))
    admin_password: str = Field(default="admin123", validation_alias=AliasChoices("ADMIN_PASSWORD",))
    admin_token: str = Field(default="ok-admin", validation_alias=AliasChoices("ADMIN_TOKEN",))

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors(self.cors_origins_raw)

# singleton
settings = Settings()

# Make sure GOOGLE_APPLICATION_CREDENTIALS is exported for firebase_admin
if settings.google_application_credentials:
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.google_application_credentials
