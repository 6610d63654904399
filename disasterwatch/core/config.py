from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Remote DisasterWatch API
    API_URL: str = "http://localhost:5000/api"
    API_TOKEN: Optional[str] = None  # Overrides the token stored with the signed-in user
    API_TIMEOUT_SECONDS: float = 10.0

    # Local offline store
    LOCAL_DATABASE_URL: str = "sqlite:///./disasterwatch_offline.db"

    # Connectivity
    ENABLE_CONNECTIVITY_PROBE: bool = True
    CONNECTIVITY_PROBE_URL: Optional[str] = None  # Falls back to {API_URL}/health
    CONNECTIVITY_POLL_SECONDS: float = 30.0

    # Sync
    SYNC_INTERVAL_MINUTES: int = 15  # A sync is due after this long without one
    PERIODIC_SYNC_SECONDS: float = 300.0  # 0 disables the periodic check

    # Live events
    SSE_HEARTBEAT_SECONDS: float = 30.0

    @property
    def connectivity_probe_url(self) -> str:
        if self.CONNECTIVITY_PROBE_URL:
            return self.CONNECTIVITY_PROBE_URL
        return f"{self.API_URL.rstrip('/')}/health"

    class Config:
        env_file = ".env"
        extra = "ignore"  # Allow extra fields in .env file

settings = Settings()
