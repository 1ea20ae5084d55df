"""
Application Settings — All via environment variables with sensible defaults.
"""
import os
from typing import List, Optional


class Settings:
    # ── Server ──
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8002"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ── CORS ──
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:8000,http://localhost:3000,*")

    # ── Analytics platform (needed only by explore/chart-backed endpoints) ──
    ANALYTICS_API_URL: str = os.getenv("ANALYTICS_API_URL", "https://app.lightdash.cloud")
    ANALYTICS_API_KEY: Optional[str] = os.getenv("ANALYTICS_API_KEY")
    ANALYTICS_TIMEOUT_SECONDS: float = float(os.getenv("ANALYTICS_TIMEOUT_SECONDS", "30"))

    # ── Resilience ──
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
    RETRY_DELAY: int = int(os.getenv("RETRY_DELAY", "1000"))          # ms, doubles per attempt

    # ── Cache ──
    CACHE_TTL_MS: int = int(os.getenv("CACHE_TTL_MS", "300000"))
    CACHE_SWEEP_INTERVAL_MS: int = int(os.getenv("CACHE_SWEEP_INTERVAL_MS", "300000"))

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
