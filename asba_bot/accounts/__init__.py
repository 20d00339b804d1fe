"""Account credential sources."""
from .loader import (
    UserCredentialSet,
    filter_complete,
    load_accounts,
    load_accounts_from_env,
    load_accounts_from_yaml,
)

__all__ = [
    "UserCredentialSet",
    "filter_complete",
    "load_accounts",
    "load_accounts_from_env",
    "load_accounts_from_yaml",
]
