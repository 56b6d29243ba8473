import os
from typing import List


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


class Settings:
    def _split_csv(self, raw: str, *, default: List[str]) -> List[str]:
        parts = [p.strip() for p in (raw or "").split(",")]
        return [p for p in parts if p] or default

    def __init__(self) -> None:
        self.env = os.getenv('APP_ENV', 'local')
        self.db_url = os.getenv('APP_DATABASE_URL') or os.getenv('DATABASE_URL', 'postgresql://localhost/urasi')
        # Comma-separated list of allowed CORS origins for the dashboard.
        # Default keeps the Vite dev server working out of the box.
        self.cors_origins = self._split_csv(
            os.getenv("CORS_ORIGINS", "").strip(),
            default=["http://localhost:5173", "http://127.0.0.1:5173"],
        )
        self.api_version = os.getenv("APP_VERSION", "0.1.0").strip() or "0.1.0"
        # Calendar days for dashboard windows are cut in this zone.
        self.timezone = os.getenv("APP_TIMEZONE", "UTC").strip() or "UTC"
        self.default_language = (os.getenv("DEFAULT_LANGUAGE", "id").strip().lower() or "id")
        self.firecrawl_api_key = os.getenv("FIRECRAWL_API_KEY", "").strip()
        self.firecrawl_base_url = (
            os.getenv("FIRECRAWL_BASE_URL", "https://api.firecrawl.dev").strip().rstrip("/")
            or "https://api.firecrawl.dev"
        )
        self.lookup_timeout_seconds = _env_int("LOOKUP_TIMEOUT_SECONDS", 30)
        self.session_days = _env_int("SESSION_DAYS", 7)
        # Failed manager-PIN attempts allowed per cashier inside the lockout window.
        self.pos_pin_max_failures = max(1, _env_int("POS_PIN_MAX_FAILURES", 5))
        self.pos_pin_lockout_minutes = max(1, _env_int("POS_PIN_LOCKOUT_MINUTES", 15))

settings = Settings()
