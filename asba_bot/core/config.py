"""Application configuration using pydantic-settings."""
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..retry.policy import RetryPolicy


class BrowserConfig(BaseModel):
    """Browser launch configuration."""

    headless: bool = True
    cdp_port: Optional[int] = None
    navigation_timeout: float = 120.0
    action_timeout: float = 60.0
    user_agent: str = ""


class PortalConfig(BaseModel):
    """MeroShare portal locations and listing filter."""

    base_url: str = "https://meroshare.cdsc.com.np"
    login_path: str = "/#/login"
    share_type: str = "Ordinary Shares"

    @property
    def login_url(self) -> str:
        return self.base_url.rstrip("/") + self.login_path


class EligibilityConfig(BaseModel):
    """Values an issue must match exactly before it is applied for."""

    share_value_per_unit: float = 100
    min_unit: int = 10


class RetryPolicyConfig(BaseModel):
    """Serializable form of a RetryPolicy."""

    max_retries: int = Field(default=3, ge=0)
    initial_delay: float = Field(default=2.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    backoff_factor: float = Field(default=2.0, ge=1)
    attempt_timeout: Optional[float] = None

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_factor=self.backoff_factor,
            attempt_timeout=self.attempt_timeout,
        )


class RetryConfig(BaseModel):
    """Per-stage retry policies."""

    navigation: RetryPolicyConfig = RetryPolicyConfig(
        max_retries=5, initial_delay=3.0, attempt_timeout=120.0
    )
    element_wait: RetryPolicyConfig = RetryPolicyConfig(max_retries=3, initial_delay=2.0)
    click: RetryPolicyConfig = RetryPolicyConfig(max_retries=3, initial_delay=1.0)
    login: RetryPolicyConfig = RetryPolicyConfig(
        max_retries=3, initial_delay=3.0, attempt_timeout=180.0
    )
    listing: RetryPolicyConfig = RetryPolicyConfig(max_retries=3, initial_delay=2.0)
    detect: RetryPolicyConfig = RetryPolicyConfig(max_retries=3, initial_delay=3.0)
    verify: RetryPolicyConfig = RetryPolicyConfig(max_retries=2, initial_delay=2.0)
    submit: RetryPolicyConfig = RetryPolicyConfig(
        max_retries=2, initial_delay=3.0, attempt_timeout=300.0
    )
    confirm: RetryPolicyConfig = RetryPolicyConfig(max_retries=1, initial_delay=3.0)


class RunConfig(BaseModel):
    """Multi-account run behaviour."""

    account_delay: float = 3.0


class Settings(BaseSettings):
    """Application settings loaded from YAML or environment."""

    browser: BrowserConfig = BrowserConfig()
    portal: PortalConfig = PortalConfig()
    eligibility: EligibilityConfig = EligibilityConfig()
    retry: RetryConfig = RetryConfig()
    run: RunConfig = RunConfig()

    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file.

        A missing file is not an error: defaults plus environment are used.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        if not path.exists():
            return cls()
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
