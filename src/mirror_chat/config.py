"""Mirror Chat — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Server ────────────────────────────────────────────
    host: str = "127.0.0.1"
    port: int = 3000

    # ── Sessions ──────────────────────────────────────────
    session_secret: str = "dev-secret"
    session_cookie_name: str = "mirror_session"

    # ── OAuth providers (a provider is enabled only when both
    #    its client id and secret are set) ─────────────────
    google_client_id: str = ""
    google_client_secret: str = ""
    google_callback: str = "/auth/google/callback"

    facebook_client_id: str = ""
    facebook_client_secret: str = ""
    facebook_callback: str = "/auth/facebook/callback"

    instagram_client_id: str = ""
    instagram_client_secret: str = ""
    instagram_callback: str = "/auth/instagram/callback"

    # ── Demo behaviour ────────────────────────────────────
    otp_ttl_seconds: float = 300.0
    auto_reply_delay_seconds: float = 1.0

    # ── App ───────────────────────────────────────────────
    app_name: str = "Mirror Chat"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Singleton settings instance
settings = Settings()
