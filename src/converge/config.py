"""Configuration management for Converge."""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from converge.core.enums import BackoffPolicy


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Only the CLI reads settings; services take explicit parameters.
    """

    # Application
    APP_NAME: str = "Converge"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Orchestration API
    KUBE_API_URL: str = "https://kubernetes.default.svc"
    KUBE_TOKEN: Optional[str] = None
    KUBE_VERIFY_TLS: bool = True
    KUBE_REQUEST_TIMEOUT: float = 30.0
    NAMESPACE: str = "default"

    # Polling
    POLL_INTERVAL: float = 1.0  # Seconds between polls
    POLL_MAX_INTERVAL: float = 10.0  # Cap for growing intervals
    POLL_BACKOFF_POLICY: BackoffPolicy = BackoffPolicy.FIXED
    WAIT_TIMEOUT: float = 600.0  # Seconds before a wait is abandoned

    # Scenario images
    KANIKO_IMAGE: str = "gcr.io/kaniko-project/executor:v1.3.0"
    REGISTRY_IMAGE: str = "registry:2.7.1"
    PROBE_IMAGE: str = "gcr.io/tekton-releases/dogfooding/skopeo:latest"

    # Verification
    SKIP_ROOT_USER_TESTS: bool = False
    STRICT_PROBE: bool = False  # Fail before comparing when the probe fails

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Singleton settings instance
    """
    return Settings()
