from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Server ────────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # ── Broadcast hub ─────────────────────────────────────────
    HUB_QUEUE_SIZE: int = 1000
    SUBSCRIBER_QUEUE_SIZE: int = 256
    SUBSCRIBER_OVERFLOW: str = "disconnect"  # or "drop_oldest"
    SUBSCRIBER_SEND_TIMEOUT_SEC: float = 10.0

    # ── Terminal viewer ───────────────────────────────────────
    VIEWER_SERVER_URL: str = "http://localhost:8080"


settings = Settings()
