"""MeroShare portal adapter.

All knowledge of the site's markup lives here; the workflow only sees the
Portal protocol. Missing elements raise ElementNotFoundError so the caller's
retry policy decides what happens next.
"""
import logging
import re
from typing import Optional

from playwright.async_api import Locator

from ..accounts import UserCredentialSet
from ..browser.page import Page
from ..core.config import PortalConfig
from ..retry import RetryExhausted
from ..workflow.errors import (
    ElementNotFoundError,
    ListingNotReadyError,
    LoginRejectedError,
    SubmissionRejectedError,
    WorkflowError,
)
from ..workflow.models import (
    Confirmation,
    ConfirmationStatus,
    Detection,
    OpportunityDetails,
)
from . import selectors as sel

logger = logging.getLogger(__name__)

LOGIN_SETTLE_S: float = 5.0
LISTING_SETTLE_S: float = 3.0
FORM_STEP_S: float = 1.0
SUBMIT_SETTLE_S: float = 5.0
OUTCOME_SETTLE_S: float = 3.0

CREDENTIAL_ERROR_WORDS: tuple[str, ...] = ("invalid", "incorrect", "wrong", "locked")


def normalize_bank_name(name: str) -> str:
    """Lower-case, collapse whitespace and spell out "Ltd"."""
    if not name:
        return ""
    normalized = re.sub(r"\s+", " ", name.strip().lower())
    return re.sub(r"\bltd\b\.?", "limited", normalized)


def bank_names_match(a: str, b: str) -> bool:
    """Loose match tolerating "Ltd." vs "Limited" and partial names."""
    if not a or not b:
        return False
    na, nb = normalize_bank_name(a), normalize_bank_name(b)
    return na == nb or na in nb or nb in na


def _parse_number(raw: Optional[str]) -> Optional[float]:
    if not raw:
        return None
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def parse_share_details(text: str) -> tuple[Optional[float], Optional[int]]:
    """Pull share value per unit and minimum unit out of detail-page text."""
    value_match = sel.SHARE_VALUE_PATTERN.search(text)
    unit_match = sel.MIN_UNIT_PATTERN.search(text)
    share_value = _parse_number(value_match.group(1) if value_match else None)
    min_unit = _parse_number(unit_match.group(1) if unit_match else None)
    return share_value, int(min_unit) if min_unit is not None else None


def classify_outcome(
    page_text: str,
    success_alert: str = "",
    error_alert: str = "",
    still_on_form: bool = False,
) -> Confirmation:
    """Classify the post-submit page. Never guesses success."""
    for pattern in sel.SUCCESS_PATTERNS:
        match = pattern.search(page_text)
        if match:
            return Confirmation(ConfirmationStatus.CONFIRMED, match.group(0))

    if success_alert and re.search(r"IPO|application|submitted|applied", success_alert, re.IGNORECASE):
        return Confirmation(ConfirmationStatus.CONFIRMED, success_alert)

    for pattern in sel.REJECTION_PATTERNS:
        match = pattern.search(page_text)
        if match:
            return Confirmation(ConfirmationStatus.REJECTED, match.group(0))

    if error_alert:
        return Confirmation(ConfirmationStatus.REJECTED, error_alert)

    if still_on_form:
        return Confirmation(
            ConfirmationStatus.REJECTED,
            "Application form still visible - submission may not have completed",
        )

    return Confirmation(
        ConfirmationStatus.INDETERMINATE,
        "Could not verify application status - please check MeroShare manually",
    )


class MeroSharePortal:
    """Portal implementation for meroshare.cdsc.com.np."""

    def __init__(self, page: Page, config: PortalConfig) -> None:
        self._page = page
        self._config = config
        # Row chosen by detect_opportunity, re-checked before every later use.
        self._row_index: Optional[int] = None
        self._share_type: str = config.share_type
        self._company_name: str = ""

    @property
    def asba_url(self) -> str:
        return self._config.base_url.rstrip("/") + "/#/asba"

    def is_session_active(self) -> bool:
        return self._page.is_session_active()

    async def reload(self) -> None:
        await self._page.reload()
        await self._page.wait(2.0)

    async def _require(self, selectors: list[str], what: str, timeout: float = 5.0) -> Locator:
        element = await self._page.find_element(selectors, timeout=timeout)
        if element is None:
            raise ElementNotFoundError(f"Could not find {what}")
        return element

    async def open_login(self) -> None:
        await self._page.navigate_with_retry(self._config.login_url)
        try:
            await self._page.wait_for_element_with_retry(sel.LOGIN_FORM, reload_on_fail=True)
        except RetryExhausted as e:
            logger.warning(f"Login form elements not found, continuing anyway: {e}")

    async def login(self, account: UserCredentialSet) -> None:
        if "login" not in self._page.current_url().lower():
            await self.open_login()

        await self._select_dp(account.dp)
        await self._page.fill_field(await self._require(sel.USERNAME_INPUT, "username field"), account.username)
        await self._page.fill_field(await self._require(sel.PASSWORD_INPUT, "password field"), account.password)
        await self._page.click(await self._require(sel.LOGIN_BUTTON, "login button"))
        await self._page.wait(LOGIN_SETTLE_S)

        if "login" not in self._page.current_url().lower():
            logger.info(f"{account.name}: login successful")
            return

        error = await self._page.find_element(sel.LOGIN_ERROR, timeout=1.0)
        message = await self._page.read_text(error) if error is not None else ""
        if message and any(word in message.lower() for word in CREDENTIAL_ERROR_WORDS):
            raise LoginRejectedError(f"Login failed: {message}")
        raise WorkflowError(f"Login failed{': ' + message if message else ''}")

    async def _select_dp(self, dp: str) -> None:
        dropdown = await self._require(sel.DP_DROPDOWN, "DP dropdown")
        await self._page.click(dropdown)
        search = await self._page.find_element(sel.DP_SEARCH_INPUT, timeout=2.0)
        if search is not None:
            await self._page.fill_field(search, dp)
            await self._page.wait(FORM_STEP_S)

        for option in await self._page.find_all(sel.DP_OPTION):
            text = await self._page.read_text(option)
            if dp.lower() in text.lower():
                await self._page.click(option)
                return
        await self._page.press("Enter")

    async def open_listing(self) -> None:
        await self._page.click_with_retry(sel.MY_ASBA_LINK)
        await self._page.wait(LISTING_SETTLE_S)
        tab = await self._page.find_element(sel.APPLY_FOR_ISSUE_TAB, timeout=2.0)
        if tab is not None:
            await self._page.click(tab)
            await self._page.wait(FORM_STEP_S)
        await self._require(sel.LISTING_READY, "ASBA listing", timeout=10.0)

    async def return_to_listing(self) -> None:
        await self._page.navigate_with_retry(self.asba_url)
        await self._page.wait(LISTING_SETTLE_S)
        tab = await self._page.find_element(sel.APPLY_FOR_ISSUE_TAB, timeout=2.0)
        if tab is not None:
            await self._page.click(tab)
            await self._page.wait(FORM_STEP_S)

    async def _row_details(self, row: Locator, share_type: str) -> OpportunityDetails:
        name = row.locator(sel.ROW_COMPANY_NAME).first
        group = row.locator(sel.ROW_SHARE_GROUP).first
        return OpportunityDetails(
            company_name=await self._page.read_text(name) if await self._page.count(name) else "",
            share_type=share_type,
            share_group=await self._page.read_text(group) if await self._page.count(group) else "",
        )

    async def _is_open(self, row: Locator) -> bool:
        return await self._page.count(row.locator(sel.ROW_APPLY_BUTTON)) > 0

    async def detect_opportunity(self, share_type: str) -> Detection:
        """Find the first listing row of ``share_type`` that can be applied for.

        Rows already applied for are only reported when no matching row is
        open. The chosen row's position is remembered for the later stages.
        """
        self._row_index = None
        self._share_type = share_type
        self._company_name = ""

        body = await self._page.read_text("body")
        if sel.NO_RECORD_PATTERN.search(body):
            logger.info('Found "No Record(s) Found" on page - no IPO available')
            return Detection.none()

        rows = await self._page.find_all(sel.ISSUE_ROW)
        if not rows:
            raise ListingNotReadyError("Listing shows neither issues nor an empty marker")

        applied: Optional[OpportunityDetails] = None
        for index, row in enumerate(rows):
            text = await self._page.read_text(row)
            if share_type.lower() not in text.lower():
                continue
            if await self._is_open(row):
                details = await self._row_details(row, share_type)
                self._row_index = index
                self._company_name = details.company_name
                logger.info(f"Open issue found: {details.company_name or 'unnamed'} (row {index + 1})")
                return Detection(found=True, details=details)
            if applied is None and await self._page.count(row.locator(sel.ROW_APPLIED_BUTTON)):
                applied = await self._row_details(row, share_type)

        if applied is not None:
            return Detection(
                found=False, already_applied=True, details=applied, reason="IPO already applied"
            )
        return Detection.none(reason=f"No {share_type} IPO available")

    async def _issue_row(self) -> Locator:
        """Re-locate the row chosen by detect_opportunity.

        Raises:
            ElementNotFoundError: If the row is gone, changed issue, or is no
                longer open.
        """
        if self._row_index is None:
            raise ElementNotFoundError("No open issue has been detected")

        rows = await self._page.find_all(sel.ISSUE_ROW)
        if self._row_index >= len(rows):
            raise ElementNotFoundError(f"Issue row {self._row_index + 1} not found")

        row = rows[self._row_index]
        text = await self._page.read_text(row)
        if self._share_type.lower() not in text.lower():
            raise ElementNotFoundError(f"Issue row {self._row_index + 1} is no longer {self._share_type}")
        if self._company_name:
            details = await self._row_details(row, self._share_type)
            if details.company_name != self._company_name:
                raise ElementNotFoundError(
                    f"Issue row {self._row_index + 1} shows {details.company_name!r}, "
                    f"expected {self._company_name!r}"
                )
        if not await self._is_open(row):
            raise ElementNotFoundError(f"{self._company_name or 'Issue'} can no longer be applied for")
        return row

    async def read_share_details(self, detection: Detection) -> OpportunityDetails:
        row = await self._issue_row()
        name = row.locator(sel.ROW_COMPANY_NAME).first
        await self._page.click(name if await self._page.count(name) else row)
        await self._page.wait(LISTING_SETTLE_S)

        text = await self._page.read_text("body")
        share_value, min_unit = parse_share_details(text)
        if share_value is None and min_unit is None:
            raise ElementNotFoundError("Share details not visible yet")

        base = detection.details or OpportunityDetails()
        return OpportunityDetails(
            company_name=base.company_name,
            share_type=base.share_type,
            share_group=base.share_group,
            share_value_per_unit=share_value,
            min_unit=min_unit,
        )

    async def _select_by_text(self, selectors: list[str], wanted: str, what: str, loose: bool) -> None:
        dropdown = await self._require(selectors, what)
        for option in await dropdown.locator("option").all():
            text = await self._page.read_text(option)
            matched = bank_names_match(text, wanted) if loose else text == wanted.strip()
            if matched:
                value = await option.get_attribute("value")
                await self._page.select_option(dropdown, value=value or text)
                return
        raise ElementNotFoundError(f"No {what} option matching {wanted!r}")

    async def submit_application(self, account: UserCredentialSet) -> None:
        row = await self._issue_row()
        await self._page.click(row.locator(sel.ROW_APPLY_BUTTON).first)
        await self._page.wait(LISTING_SETTLE_S)

        await self._select_by_text(sel.BANK_SELECT, account.bank, "bank", loose=True)
        await self._page.wait(2.0)
        await self._select_by_text(sel.ACCOUNT_SELECT, account.account_number, "account number", loose=False)
        await self._page.wait(FORM_STEP_S)

        await self._page.fill_field(await self._require(sel.KITTA_INPUT, "kitta field"), account.kitta)
        await self._page.fill_field(await self._require(sel.CRN_INPUT, "CRN field"), account.crn)
        await self._page.check(await self._require(sel.DECLARATION_CHECKBOX, "declaration checkbox"))

        await self._page.click(await self._require(sel.PROCEED_BUTTON, "Proceed button"))
        await self._page.wait(2.0)
        await self._page.fill_field(await self._require(sel.PIN_INPUT, "PIN field"), account.txn_pin)
        await self._page.click(await self._require(sel.FINAL_APPLY_BUTTON, "Apply button"))
        await self._page.wait(SUBMIT_SETTLE_S)

        error = await self._page.find_element(sel.ERROR_ALERT, timeout=1.0)
        if error is not None:
            message = await self._page.read_text(error)
            raise SubmissionRejectedError(message or "Portal reported an error after submission")

    async def read_outcome(self) -> Confirmation:
        await self._page.wait(OUTCOME_SETTLE_S)
        body = await self._page.read_text("body")

        success = await self._page.find_element(sel.SUCCESS_ALERT, timeout=2.0)
        success_text = await self._page.read_text(success) if success is not None else ""
        error = await self._page.find_element(sel.ERROR_ALERT, timeout=1.0)
        error_text = await self._page.read_text(error) if error is not None else ""
        still_on_form = await self._page.find_element(sel.STILL_ON_FORM, timeout=1.0) is not None

        return classify_outcome(body, success_text, error_text, still_on_form)
