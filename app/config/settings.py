from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Lets table access bypass RLS; ownership is enforced in services

    # Google Maps (geocoding + places text search)
    google_maps_api_key: Optional[str] = None
    upstream_timeout_seconds: float = 5.0
    places_search_radius_m: int = 5000
    geocode_language: str = "ko"

    # OAuth / session
    oauth_provider: str = "google"
    site_url: str = "http://localhost:3000"  # Frontend origin that owns /login, /onboarding, /map
    api_base_url: str = "http://localhost:8000"
    session_cookie_name: str = "access_token"
    pkce_cookie_name: str = "oauth_code_verifier"
    pkce_cookie_max_age: int = 600

    # App
    app_name: str = "matjip-map-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    upstream_rate_limit: str = "30/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def oauth_callback_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/api/v1/auth/callback"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
