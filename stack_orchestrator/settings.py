# stack_orchestrator/settings.py

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stack_orchestrator.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Process configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Docker Cloud credentials (NO DEFAULTS)
    dockercloud_user: str
    dockercloud_apikey: str
    dockercloud_url: str = "https://cloud.docker.com"

    # GitHub
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    github_webhook_secret: str = ""
    bot_login: str = ""
    config_file_path: str = ".github/docker-cloud-config.yml"

    # Convergence
    poll_interval_seconds: float = 5.0
    convergence_retries: int = 10
    request_timeout_seconds: float = 30.0

    serialize_branch_events: bool = True

    @field_validator("dockercloud_user", "dockercloud_apikey")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @property
    def stack_api_base_url(self) -> str:
        return self.dockercloud_url.rstrip("/")


def load_settings(**overrides) -> Settings:
    """
    Build settings once at startup.

    Raises:
        ConfigurationError: If a required credential is missing or empty.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = sorted(
            str(err["loc"][0]).upper() for err in e.errors() if err.get("loc")
        )
        names = ", ".join(f"'{name}'" for name in missing)
        raise ConfigurationError(f"Missing or invalid environment variable(s): {names}") from e
