"""Core utilities: configuration and logging."""
from .config import (
    BrowserConfig,
    EligibilityConfig,
    PortalConfig,
    RetryConfig,
    RetryPolicyConfig,
    RunConfig,
    Settings,
)
from .logging import setup_logging

__all__ = [
    "Settings",
    "BrowserConfig",
    "PortalConfig",
    "EligibilityConfig",
    "RetryConfig",
    "RetryPolicyConfig",
    "RunConfig",
    "setup_logging",
]
