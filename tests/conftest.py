from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import pytest

from asba_bot.accounts import UserCredentialSet
from asba_bot.core.config import Settings
from asba_bot.retry import RetryExecutor
from asba_bot.workflow.errors import NON_RETRYABLE
from asba_bot.workflow.models import (
    Confirmation,
    ConfirmationStatus,
    Detection,
    OpportunityDetails,
)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _step(value: Any) -> Any:
    """Raise ``value`` if it is an exception, else return it."""
    if isinstance(value, BaseException):
        raise value
    return value


class FakePortal:
    """Scriptable Portal. Each ``*_results`` list is consumed one entry per call;
    the last entry repeats once the list is exhausted."""

    def __init__(
        self,
        login_results: Optional[list[Any]] = None,
        detect_results: Optional[list[Any]] = None,
        details_results: Optional[list[Any]] = None,
        submit_results: Optional[list[Any]] = None,
        outcome_results: Optional[list[Any]] = None,
    ) -> None:
        open_issue = OpportunityDetails(company_name="Acme Hydropower Ltd.", share_type="Ordinary Shares")
        self._results: dict[str, list[Any]] = {
            "login": login_results or [None],
            "detect": detect_results or [Detection(found=True, details=open_issue)],
            "details": details_results or [
                OpportunityDetails(
                    company_name="Acme Hydropower Ltd.",
                    share_type="Ordinary Shares",
                    share_value_per_unit=100,
                    min_unit=10,
                )
            ],
            "submit": submit_results or [None],
            "outcome": outcome_results or [
                Confirmation(ConfirmationStatus.CONFIRMED, "IPO applied successfully")
            ],
        }
        self.calls: list[str] = []
        self.active = True
        self.close_on_submit = False

    def _next(self, key: str) -> Any:
        self.calls.append(key)
        results = self._results[key]
        value = results.pop(0) if len(results) > 1 else results[0]
        return _step(value)

    def is_session_active(self) -> bool:
        return self.active

    async def reload(self) -> None:
        self.calls.append("reload")

    async def open_login(self) -> None:
        self.calls.append("open_login")

    async def login(self, account: UserCredentialSet) -> None:
        self._next("login")

    async def open_listing(self) -> None:
        self.calls.append("open_listing")

    async def detect_opportunity(self, share_type: str) -> Detection:
        return self._next("detect")

    async def read_share_details(self, detection: Detection) -> OpportunityDetails:
        return self._next("details")

    async def return_to_listing(self) -> None:
        self.calls.append("return_to_listing")

    async def submit_application(self, account: UserCredentialSet) -> None:
        if self.close_on_submit:
            self.active = False
        self._next("submit")

    async def read_outcome(self) -> Confirmation:
        return self._next("outcome")


class RecordingNotifier:
    def __init__(self, result: bool = True, error: Optional[Exception] = None) -> None:
        self.messages: list[tuple[str, str]] = []
        self._result = result
        self._error = error

    async def send(self, destination: str, message: str) -> bool:
        self.messages.append((destination, message))
        if self._error is not None:
            raise self._error
        return self._result


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def executor(sleep: RecordingSleep) -> RetryExecutor:
    return RetryExecutor(give_up_on=NON_RETRYABLE, sleep=sleep)


@pytest.fixture
def settings() -> Settings:
    return Settings(telegram_bot_token="123:abc", telegram_chat_id="42")


@pytest.fixture
def account() -> UserCredentialSet:
    return UserCredentialSet(
        name="User 1",
        username="00123456",
        password="secret",
        dp="NIC ASIA CAPITAL LIMITED (13700)",
        bank="NIC Asia Bank Ltd.",
        account_number="0123456789012",
        kitta="10",
        crn="R00123456",
        txn_pin="1234",
    )


def make_account(name: str, **overrides: str) -> UserCredentialSet:
    values = dict(
        name=name,
        username=f"{name.lower().replace(' ', '')}-login",
        password="secret",
        dp="13700",
        bank="NIC Asia Bank Ltd.",
        account_number="0123456789012",
        kitta="10",
        crn="R00123456",
        txn_pin="1234",
    )
    values.update(overrides)
    return UserCredentialSet(**values)


def session_factory_for(portals: list[FakePortal]):
    """Session factory handing out one portal per session, in order."""
    remaining = list(portals)
    opened: list[FakePortal] = []

    @asynccontextmanager
    async def factory() -> AsyncIterator[FakePortal]:
        portal = remaining.pop(0)
        opened.append(portal)
        try:
            yield portal
        finally:
            portal.active = False

    factory.opened = opened  # type: ignore[attr-defined]
    return factory
