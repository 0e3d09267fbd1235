"""
Runtime configuration read from environment variables.
"""

import os
from dataclasses import dataclass, field


def _split_origins(raw: str) -> list[str]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


@dataclass
class Settings:
    environment: str = "dev"
    port: int = 8080
    supabase_url: str = ""
    supabase_service_key: str = ""
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_trail_size: int = 10

    @property
    def has_store_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            environment=env.get("ENVIRONMENT", "dev"),
            port=int(env.get("PORT", 8080)),
            supabase_url=env.get("SUPABASE_URL", ""),
            supabase_service_key=env.get("SUPABASE_SERVICE_ROLE_KEY", ""),
            allowed_origins=_split_origins(env.get("ALLOWED_ORIGINS", "*")),
            log_trail_size=int(env.get("LOG_TRAIL_SIZE", 10)),
        )
