"""Sequential multi-account run with one consolidated notification."""
import asyncio
import logging
from typing import AsyncContextManager, Awaitable, Callable, Iterable, Optional

from ..accounts import UserCredentialSet
from ..core.config import Settings
from ..notify.messages import format_no_accounts, format_run_summary
from ..retry import RetryExecutor
from .coordinator import WorkflowCoordinator
from .errors import NON_RETRYABLE
from .models import AccountResult, FinalStatus
from .ports import NotificationSink, Portal
from .summary import RunSummary

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[Portal]]


class AccountRunner:
    """Runs the workflow once per account, strictly one after another.

    Each account gets a fresh session from ``session_factory`` so no
    cookies or auth state carry over. Results are reduced into a single
    RunSummary and one notification.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        settings: Settings,
        notifier: Optional[NotificationSink] = None,
        executor: Optional[RetryExecutor] = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings
        self._notifier = notifier
        self._executor = executor or RetryExecutor(give_up_on=NON_RETRYABLE)
        self._sleep = sleep

    async def run(self, accounts: Iterable[UserCredentialSet]) -> RunSummary:
        """Process every account and send the consolidated notification."""
        accounts = list(accounts)
        if not accounts:
            logger.warning("No valid accounts configured, nothing to process")
            await self._deliver(format_no_accounts())
            return RunSummary()

        logger.info(f"Found {len(accounts)} valid account(s) to process")
        results: list[AccountResult] = []
        for i, account in enumerate(accounts):
            logger.info(
                f"========== Processing {account.name} ({i + 1}/{len(accounts)}) =========="
            )
            results.append(await self._run_account(account))

            if i < len(accounts) - 1 and self._settings.run.account_delay > 0:
                logger.info("Waiting before next account...")
                await self._sleep(self._settings.run.account_delay)

        summary = RunSummary(results)
        self._log_summary(summary)
        await self._deliver(
            format_run_summary(summary, share_type=self._settings.portal.share_type)
        )
        return summary

    async def _run_account(self, account: UserCredentialSet) -> AccountResult:
        try:
            async with self._session_factory() as portal:
                coordinator = WorkflowCoordinator(portal, self._settings, self._executor)
                state = await coordinator.run(account)
        except Exception as e:
            logger.error(f"{account.name}: browser session failed: {e}")
            return AccountResult(account.name, FinalStatus.FAILED, f"Browser session failed: {e}")
        return AccountResult.from_state(state)

    def _log_summary(self, summary: RunSummary) -> None:
        logger.info("========== SUMMARY ==========")
        for result in summary.results:
            logger.info(f"{result.account}: {result.status.value} - {result.message}")
        if summary.error:
            logger.error(summary.error)

    async def _deliver(self, message: str) -> None:
        """Best-effort delivery; never raises."""
        chat_id = self._settings.telegram_chat_id
        if self._notifier is None or not chat_id:
            logger.info("Notifications disabled, skipping delivery")
            return
        try:
            delivered = await self._notifier.send(chat_id, message)
        except Exception as e:
            logger.error(f"Notification delivery failed: {e}")
            return
        if not delivered:
            logger.warning("Notification was not delivered")
