"""
Configuration for the platform client and the API process.

Settings come from environment variables; ``main`` loads a ``.env`` file first.
"""

from dataclasses import dataclass
import os

DEFAULT_API_URL = "https://app.connexcs.com/api/cp/"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigurationError(Exception):
    """Raised when a required setting is missing or invalid."""
    pass


@dataclass
class Config:
    api_url: str
    api_username: str
    api_password: str
    api_timeout: float
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """
        Build a Config from the environment and validate it.

        Required:
            - CX_API_USERNAME: platform account
            - CX_API_PASSWORD: platform password

        Optional:
            - CX_API_URL: REST base URL (default: ConnexCS control panel API)
            - CX_API_TIMEOUT: request timeout in seconds (default: 30)
            - LOG_LEVEL: log level (default: INFO)

        Raises:
            ConfigurationError: a required setting is missing or a value is invalid
        """
        timeout_raw = os.environ.get("CX_API_TIMEOUT", "30")
        try:
            api_timeout = float(timeout_raw)
        except ValueError:
            raise ConfigurationError(f"CX_API_TIMEOUT must be a number: {timeout_raw!r}")

        config = cls(
            api_url=os.environ.get("CX_API_URL", "") or DEFAULT_API_URL,
            api_username=os.environ.get("CX_API_USERNAME", "").strip(),
            api_password=os.environ.get("CX_API_PASSWORD", ""),
            api_timeout=api_timeout,
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        missing_fields = []
        if not self.api_username:
            missing_fields.append("CX_API_USERNAME")
        if not self.api_password:
            missing_fields.append("CX_API_PASSWORD")
        if missing_fields:
            raise ConfigurationError(
                f"Missing required settings, set these environment variables: "
                f"{', '.join(missing_fields)}"
            )

        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"CX_API_URL must be an http(s) URL: {self.api_url}")

        if self.api_timeout <= 0:
            raise ConfigurationError(f"CX_API_TIMEOUT must be positive: {self.api_timeout}")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}: {self.log_level}"
            )
