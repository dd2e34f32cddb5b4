"""Application configuration."""
import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class XapiConfig:
    """Remote API settings."""

    base_url: str = "https://your_3cx_server.3cx.eu:5001"
    client_id: str = ""
    client_secret: str = ""  # Read from the environment, never logged
    timeout: int = 60
    verify_ssl: bool = True
    max_attempts: int = 3
    retry_backoff: float = 1.0
    api_prefix: str = "/xapi/v1"
    swagger_path: str = "/xapi/v1/swagger.yaml"
    token_path: str = "/connect/token"

    @property
    def token_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.token_path}"

    @property
    def swagger_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.swagger_path}"

    @classmethod
    def from_env(cls) -> "XapiConfig":
        """Load config from environment variables."""
        return cls(
            base_url=os.getenv("XAPI_URL", cls.base_url),
            client_id=os.getenv("XAPI_USER", ""),
            client_secret=os.getenv("XAPI_KEY", ""),
            timeout=int(os.getenv("XAPI_TIMEOUT", "60")),
            verify_ssl=_env_bool("XAPI_VERIFY_SSL", True),
            max_attempts=int(os.getenv("XAPI_MAX_ATTEMPTS", "3")),
        )


@dataclass
class AppConfig:
    """Application settings."""

    definitions_file: str = "./definitions.json"
    output_dir: str = "./output"
    definitions_max_age: int = 3600  # seconds
    debug: bool = False
    sample_rows: int = 20
    primary_locale: str = "en"
    secondary_locale: str = "hr"
    xapi: XapiConfig = None

    def __post_init__(self):
        """Fill in default values."""
        if self.xapi is None:
            self.xapi = XapiConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            definitions_file=os.getenv("XAPI_DEFINITIONS_FILE", "./definitions.json"),
            output_dir=os.getenv("XAPI_OUTPUT_DIR", "./output"),
            definitions_max_age=int(os.getenv("XAPI_DEFINITIONS_MAX_AGE", "3600")),
            debug=_env_bool("XAPI_DEBUG", False),
            primary_locale=os.getenv("XAPI_PRIMARY_LOCALE", "en"),
            secondary_locale=os.getenv("XAPI_SECONDARY_LOCALE", "hr"),
            xapi=XapiConfig.from_env(),
        )


# Global instance
app_config = AppConfig.from_env()
