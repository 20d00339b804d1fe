"""CLI entry point for the MeroShare IPO (ASBA) bot."""
import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from asba_bot.accounts import load_accounts
from asba_bot.browser import BrowserManager
from asba_bot.core.config import Settings
from asba_bot.core.logging import setup_logging
from asba_bot.notify import TelegramNotifier
from asba_bot.portal import MeroSharePortal
from asba_bot.retry import RetryExecutor
from asba_bot.workflow.errors import NON_RETRYABLE
from asba_bot.workflow.runner import AccountRunner

logger = logging.getLogger(__name__)


async def run(settings: Settings, accounts_path: Optional[Path]) -> int:
    """Check every configured account once. Returns the process exit code."""
    accounts = load_accounts(accounts_path)
    executor = RetryExecutor(give_up_on=NON_RETRYABLE)
    notifier = TelegramNotifier(settings.telegram_bot_token) if settings.telegram_enabled else None
    if notifier is None:
        logger.warning("TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not set, results will only be logged")

    manager = BrowserManager(settings.browser, retry=settings.retry, executor=executor)

    @asynccontextmanager
    async def portal_session() -> AsyncIterator[MeroSharePortal]:
        async with manager.session() as page:
            yield MeroSharePortal(page, settings.portal)

    try:
        await manager.start()
    except Exception as e:
        logger.error(f"Failed to start browser: {e}")
        return 1

    try:
        runner = AccountRunner(portal_session, settings, notifier=notifier, executor=executor)
        summary = await runner.run(accounts)
    finally:
        await manager.stop()

    return summary.exit_code


def main() -> int:
    """Parse arguments and run the bot."""
    parser = argparse.ArgumentParser(
        description="Check MeroShare for open IPOs and apply for every configured account"
    )
    parser.add_argument(
        "--settings", "-s",
        default="config/settings.yaml",
        help="Path to settings YAML file"
    )
    parser.add_argument(
        "--accounts", "-a",
        help="Path to accounts YAML file (default: USER{n}_* environment variables)"
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    setup_logging("DEBUG" if args.debug else "INFO")
    logger.info("=== asba-bot starting ===")

    settings = Settings.from_yaml(Path(args.settings))
    if args.headed:
        settings.browser.headless = False

    accounts_path = Path(args.accounts) if args.accounts else None
    exit_code = asyncio.run(run(settings, accounts_path))

    logger.info("=== asba-bot finished ===")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
