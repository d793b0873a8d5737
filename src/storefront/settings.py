"""Process settings read from the environment."""

import os
from dataclasses import dataclass

DEFAULT_ADMIN_TOKEN = "change-me"


@dataclass(frozen=True)
class Settings:
    admin_token: str = DEFAULT_ADMIN_TOKEN
    log_level: str = "INFO"
    ping_message: str = "ping"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            admin_token=os.environ.get("STOREFRONT_ADMIN_TOKEN", DEFAULT_ADMIN_TOKEN),
            log_level=os.environ.get("STOREFRONT_LOG_LEVEL", "INFO").upper(),
            ping_message=os.environ.get("PING_MESSAGE", "ping"),
        )
