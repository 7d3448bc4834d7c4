import os
from enum import Enum
from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""

    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):  # type: ignore[misc]
    """
    Relay server settings.

    Every field can be overridden by an environment variable of the same
    name. List fields are read as JSON (e.g. ``ALLOWED_ORIGINS='["*"]'``).
    """

    model_config = SettingsConfigDict(case_sensitive=True)

    ENV: Environment = Environment.DEV

    # Server binding
    HOST: str = "0.0.0.0"
    PORT: int = 10000

    # Origins allowed for CORS and WebSocket upgrades ("*" allows all)
    ALLOWED_ORIGINS: list[str] = [
        "https://www.nexuswebsite.me",
        "https://nexuswebsite.me",
        "http://www.nexuswebsite.me",
        "http://nexuswebsite.me",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Interval between heartbeat log lines
    HEARTBEAT_INTERVAL_SECONDS: float = 30

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_CONSOLE_FORMAT: Literal["human", "json"] = "human"
    LOG_FILE_PATH: str | None = None
    LOG_EXCLUDED_PATHS: list[str] = ["/health", "/ping", "/metrics"]

    # Loki settings
    LOKI_ENABLED: bool = False
    LOKI_URL: str = "http://loki:3100"
    LOKI_VERSION: str = "1"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings with environment-specific defaults."""
        super().__init__(**kwargs)
        self._apply_environment_defaults(kwargs)

    def _apply_environment_defaults(self, overrides: dict[str, Any]) -> None:
        """Apply environment-specific logging defaults."""

        def unset(name: str) -> bool:
            return name not in overrides and os.getenv(name) is None

        if self.ENV == Environment.PRODUCTION:
            if unset("LOG_CONSOLE_FORMAT"):
                self.LOG_CONSOLE_FORMAT = "json"
            if unset("LOG_LEVEL"):
                self.LOG_LEVEL = "WARNING"

        elif self.ENV == Environment.STAGING:
            if unset("LOG_CONSOLE_FORMAT"):
                self.LOG_CONSOLE_FORMAT = "json"
            if unset("LOG_LEVEL"):
                self.LOG_LEVEL = "INFO"

        else:  # Environment.DEV
            if unset("LOG_CONSOLE_FORMAT"):
                self.LOG_CONSOLE_FORMAT = "human"
            if unset("LOG_LEVEL"):
                self.LOG_LEVEL = "DEBUG"

    def is_origin_allowed(self, origin: str | None) -> bool:
        """
        Check an Origin header against ALLOWED_ORIGINS.

        Requests without an origin (native clients, curl) are allowed.
        """
        if not origin:
            return True
        return "*" in self.ALLOWED_ORIGINS or origin in self.ALLOWED_ORIGINS


app_settings = Settings()
