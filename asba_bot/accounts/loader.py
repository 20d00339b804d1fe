"""Account credential loading from environment or YAML."""
import logging
import os
from pathlib import Path
from typing import Iterable, Mapping, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MAX_ENV_ACCOUNTS: int = 10

MANDATORY_FIELDS: tuple[str, ...] = ("username", "password", "dp")
APPLY_FIELDS: tuple[str, ...] = ("bank", "account_number", "kitta", "crn", "txn_pin")

# Environment suffix for each credential field: USER{n}_<SUFFIX>.
ENV_SUFFIXES: dict[str, str] = {
    "name": "NAME",
    "username": "USERNAME",
    "password": "PASSWORD",
    "dp": "DP",
    "bank": "BANK",
    "account_number": "ACCOUNT_NO",
    "kitta": "KITTA",
    "crn": "CRN",
    "txn_pin": "TXN_PIN",
}

# Single-account variable names still honoured for the first account.
LEGACY_PRIMARY_ENV: dict[str, str] = {
    "username": "MEROSHARE_USERNAME",
    "password": "MEROSHARE_PASSWORD",
    "dp": "MEROSHARE_DP_NP",
    "bank": "MEROSHARE_BANK",
    "account_number": "MEROSHARE_P_ACCOUNT_NO",
    "kitta": "MEROSHARE_KITTA_N0",
    "crn": "MEROSHARE_CRN_NO",
    "txn_pin": "MEROSHARE_TXN_PIN",
}


class UserCredentialSet(BaseModel):
    """One portal account and the values needed to apply from it."""
    name: str
    username: str = ""
    password: str = Field(default="", repr=False)
    dp: str = ""

    bank: str = ""
    account_number: str = ""
    kitta: str = ""
    crn: str = Field(default="", repr=False)
    txn_pin: str = Field(default="", repr=False)

    @property
    def is_complete(self) -> bool:
        """True when every field needed to log in is present."""
        return not self.missing_fields()

    @property
    def can_auto_apply(self) -> bool:
        """True when every field needed to fill the application form is present."""
        return all(getattr(self, f).strip() for f in APPLY_FIELDS)

    def missing_fields(self) -> list[str]:
        return [f for f in MANDATORY_FIELDS if not getattr(self, f).strip()]

    def missing_apply_fields(self) -> list[str]:
        return [f for f in APPLY_FIELDS if not getattr(self, f).strip()]


def load_accounts_from_env(
    environ: Optional[Mapping[str, str]] = None,
    max_accounts: int = MAX_ENV_ACCOUNTS,
) -> list[UserCredentialSet]:
    """Read ``USER{n}_*`` variables for n = 1..max_accounts.

    Account 1 falls back to the legacy ``MEROSHARE_*`` names. Slots with no
    username are skipped; completeness is checked by filter_complete.
    """
    env = os.environ if environ is None else environ
    accounts: list[UserCredentialSet] = []

    for n in range(1, max_accounts + 1):
        values: dict[str, str] = {}
        for field_name, suffix in ENV_SUFFIXES.items():
            value = env.get(f"USER{n}_{suffix}", "")
            if not value and n == 1 and field_name in LEGACY_PRIMARY_ENV:
                value = env.get(LEGACY_PRIMARY_ENV[field_name], "")
            values[field_name] = value.strip()

        if not values["username"]:
            continue

        values["name"] = values["name"] or f"User {n}"
        accounts.append(UserCredentialSet(**values))

    logger.debug(f"Read {len(accounts)} account(s) from environment")
    return accounts


def load_accounts_from_yaml(path: Path) -> list[UserCredentialSet]:
    """Load accounts from a YAML file with a top-level ``accounts`` list.

    Args:
        path: Path to the accounts YAML file.

    Returns:
        Accounts in file order. Unnamed entries are called "User <n>".
    """
    logger.info(f"Loading accounts from {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("accounts", []) if isinstance(data, dict) else data
    accounts: list[UserCredentialSet] = []
    for i, entry in enumerate(entries or [], start=1):
        values = {k: str(v) for k, v in entry.items() if v is not None}
        values.setdefault("name", f"User {i}")
        accounts.append(UserCredentialSet(**values))
    return accounts


def filter_complete(accounts: Iterable[UserCredentialSet]) -> list[UserCredentialSet]:
    """Drop accounts missing a mandatory login field."""
    valid: list[UserCredentialSet] = []
    for account in accounts:
        missing = account.missing_fields()
        if missing:
            logger.warning(f"Skipping {account.name}: missing {', '.join(missing)}")
            continue
        valid.append(account)
    return valid


def load_accounts(path: Optional[Path] = None) -> list[UserCredentialSet]:
    """Load and validate accounts from YAML if given, else from environment."""
    if path is not None:
        accounts = load_accounts_from_yaml(path)
    else:
        accounts = load_accounts_from_env()
    return filter_complete(accounts)
