from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Invite consumption and membership writes bypass RLS

    # App
    app_name: str = "homebase-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    app_base_url: str = "http://localhost:5173"  # Web dashboard origin, used for invite links

    # Auth
    auth_cache_ttl_seconds: int = 60
    auth_cache_max_size: int = 500

    # Invites
    invite_token_bytes: int = 32

    # Seeded defaults (ensure-or-seed)
    default_family_name: str = "My Family"
    default_calendar_name: str = "Home Calendar"
    default_calendar_color: str = "#007bff"
    default_task_list_name: str = "Family Tasks"

    # Billing
    checkout_function_name: str = "create-checkout-session"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
