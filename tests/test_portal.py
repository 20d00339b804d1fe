"""Tests for the MeroShare adapter: page parsing, outcome classification and listing handling."""
from __future__ import annotations

import pytest

from asba_bot.core.config import PortalConfig
from asba_bot.portal import selectors as sel
from asba_bot.portal.meroshare import (
    MeroSharePortal,
    bank_names_match,
    classify_outcome,
    normalize_bank_name,
    parse_share_details,
)
from asba_bot.workflow.errors import (
    ElementNotFoundError,
    ListingNotReadyError,
    LoginRejectedError,
    WorkflowError,
)
from asba_bot.workflow.models import ConfirmationStatus, Detection


class TestParseShareDetails:
    def test_reads_both_values(self) -> None:
        text = "Issue Manager: NIBL Ace\nShare Value Per Unit: 100\nMin Unit: 10\nMax Unit: 50000"

        assert parse_share_details(text) == (100.0, 10)

    def test_tolerates_currency_and_commas(self) -> None:
        text = "Share Value Per Unit : Rs. 1,000.00  Minimum Unit 10"

        assert parse_share_details(text) == (1000.0, 10)

    def test_missing_values_are_none(self) -> None:
        assert parse_share_details("Company Name: Acme") == (None, None)


class TestBankNames:
    def test_ltd_and_limited_are_equal(self) -> None:
        assert normalize_bank_name("NIC Asia Bank Ltd.") == "nic asia bank limited"
        assert bank_names_match("NIC ASIA BANK LIMITED", "NIC Asia Bank Ltd.")

    def test_partial_name_matches(self) -> None:
        assert bank_names_match("Global IME Bank Limited", "Global IME Bank")

    def test_different_banks_do_not_match(self) -> None:
        assert not bank_names_match("Nabil Bank Limited", "NIC Asia Bank Ltd.")
        assert not bank_names_match("", "NIC Asia Bank Ltd.")


class TestClassifyOutcome:
    @pytest.mark.parametrize("text", [
        "Share has been applied successfully.",
        "Your application has been submitted.",
        "Application successful",
    ])
    def test_success_text_confirms(self, text: str) -> None:
        assert classify_outcome(text).status is ConfirmationStatus.CONFIRMED

    def test_success_alert_confirms(self) -> None:
        result = classify_outcome("", success_alert="Share has been applied")

        assert result.status is ConfirmationStatus.CONFIRMED

    @pytest.mark.parametrize("text", [
        "Insufficient balance in account",
        "Invalid PIN entered",
        "You have already applied for this issue",
        "Duplicate application detected",
        "An error occurred, please try again later",
        "Something went wrong",
        "Internal server error",
        "Session expired",
        "Quota exceeded for this issue",
    ])
    def test_rejection_text_rejects(self, text: str) -> None:
        assert classify_outcome(text).status is ConfirmationStatus.REJECTED

    def test_error_alert_rejects(self) -> None:
        result = classify_outcome("", error_alert="Something went wrong")

        assert result.status is ConfirmationStatus.REJECTED
        assert result.message == "Something went wrong"

    def test_form_still_visible_rejects(self) -> None:
        assert classify_outcome("", still_on_form=True).status is ConfirmationStatus.REJECTED

    def test_nothing_recognisable_is_indeterminate(self) -> None:
        result = classify_outcome("My ASBA  Apply for Issue  Current Issue")

        assert result.status is ConfirmationStatus.INDETERMINATE
        assert result.status is not ConfirmationStatus.CONFIRMED


class FakeElement:
    """Stand-in for a Playwright Locator: text plus a present/absent flag."""

    def __init__(self, text: str = "", present: bool = True) -> None:
        self.text = text
        self.present = present

    @property
    def first(self) -> "FakeElement":
        return self


class FakeRow(FakeElement):
    """Listing row whose child locators are keyed by selector."""

    def __init__(self, name: str, share_type: str, button: str = "Apply") -> None:
        super().__init__(" ".join(p for p in (name, share_type, button) if p))
        self.children = {
            sel.ROW_COMPANY_NAME: FakeElement(name, present=bool(name)),
            sel.ROW_SHARE_GROUP: FakeElement(share_type),
            sel.ROW_APPLY_BUTTON: FakeElement("Apply", present=button == "Apply"),
            sel.ROW_APPLIED_BUTTON: FakeElement(button, present=button in ("Edit", "In Process")),
        }

    def locator(self, selector: str) -> FakeElement:
        return self.children.get(selector, FakeElement(present=False))


class FakePage:
    """Duck-typed browser.page.Page driven by plain attributes."""

    def __init__(
        self,
        body: str = "",
        rows: list[FakeRow] | None = None,
        visible: dict[str, FakeElement] | None = None,
        url: str = "https://meroshare.cdsc.com.np/#/login",
        after_login_url: str | None = None,
    ) -> None:
        self.body = body
        self.rows = rows or []
        self.visible = visible or {}
        self.url = url
        self.after_login_url = after_login_url
        self.clicked: list[object] = []
        self.filled: list[tuple[object, str]] = []

    def current_url(self) -> str:
        return self.url

    def is_session_active(self) -> bool:
        return True

    async def read_text(self, target="body") -> str:
        return self.body if target == "body" else target.text

    async def find_all(self, selector: str) -> list:
        return list(self.rows) if selector == sel.ISSUE_ROW else []

    async def count(self, target: FakeElement) -> int:
        return 1 if target.present else 0

    async def find_element(self, selectors, timeout: float = 2.0):
        for selector in [selectors] if isinstance(selectors, str) else selectors:
            if selector in self.visible:
                return self.visible[selector]
        return None

    async def click(self, target) -> None:
        self.clicked.append(target)
        if target is self.visible.get(sel.LOGIN_BUTTON[0]) and self.after_login_url:
            self.url = self.after_login_url

    async def fill_field(self, target, value: str) -> None:
        self.filled.append((target, value))

    async def wait(self, seconds: float) -> None:
        pass

    async def press(self, key: str) -> None:
        pass

    async def navigate_with_retry(self, url: str) -> None:
        self.url = url

    async def wait_for_element_with_retry(self, selectors, timeout: float = 30.0, reload_on_fail: bool = False):
        return await self.find_element(selectors)


def _portal(page: FakePage) -> MeroSharePortal:
    return MeroSharePortal(page, PortalConfig())  # type: ignore[arg-type]


SHARE_DETAILS = "Share Value Per Unit: 100\nMin Unit: 10"


class TestDetectOpportunity:
    @pytest.mark.asyncio
    async def test_no_record_marker(self) -> None:
        page = FakePage(body="Apply for Issue  No Record(s) Found")

        detection = await _portal(page).detect_opportunity("Ordinary Shares")

        assert not detection.found
        assert not detection.already_applied

    @pytest.mark.asyncio
    async def test_empty_listing_is_not_ready(self) -> None:
        with pytest.raises(ListingNotReadyError):
            await _portal(FakePage(body="Loading...")).detect_opportunity("Ordinary Shares")

    @pytest.mark.asyncio
    async def test_other_share_types_are_ignored(self) -> None:
        page = FakePage(rows=[FakeRow("Gamma Bank Debenture 2090", "Debentures")])

        detection = await _portal(page).detect_opportunity("Ordinary Shares")

        assert not detection.found
        assert detection.reason == "No Ordinary Shares IPO available"

    @pytest.mark.asyncio
    async def test_open_row_found(self) -> None:
        page = FakePage(rows=[FakeRow("Beta Power Ltd.", "Ordinary Shares")])

        detection = await _portal(page).detect_opportunity("Ordinary Shares")

        assert detection.found
        assert detection.details.company_name == "Beta Power Ltd."

    @pytest.mark.asyncio
    async def test_only_applied_rows_are_already_actioned(self) -> None:
        page = FakePage(rows=[FakeRow("Alpha Hydro Ltd.", "Ordinary Shares", button="Edit")])

        detection = await _portal(page).detect_opportunity("Ordinary Shares")

        assert not detection.found
        assert detection.already_applied
        assert detection.details.company_name == "Alpha Hydro Ltd."

    @pytest.mark.asyncio
    async def test_open_row_below_applied_row_is_found(self) -> None:
        page = FakePage(rows=[
            FakeRow("Alpha Hydro Ltd.", "Ordinary Shares", button="Edit"),
            FakeRow("Beta Power Ltd.", "Ordinary Shares"),
        ])

        detection = await _portal(page).detect_opportunity("Ordinary Shares")

        assert detection.found
        assert not detection.already_applied
        assert detection.details.company_name == "Beta Power Ltd."


class TestReadShareDetails:
    @pytest.mark.asyncio
    async def test_reads_values_from_chosen_row(self) -> None:
        rows = [
            FakeRow("Alpha Hydro Ltd.", "Ordinary Shares", button="Edit"),
            FakeRow("Beta Power Ltd.", "Ordinary Shares"),
        ]
        page = FakePage(body=SHARE_DETAILS, rows=rows)
        portal = _portal(page)
        detection = await portal.detect_opportunity("Ordinary Shares")

        details = await portal.read_share_details(detection)

        assert page.clicked == [rows[1].children[sel.ROW_COMPANY_NAME]]
        assert details.company_name == "Beta Power Ltd."
        assert (details.share_value_per_unit, details.min_unit) == (100.0, 10)

    @pytest.mark.asyncio
    async def test_unnamed_row_is_matched_by_position_and_share_type(self) -> None:
        rows = [FakeRow("Gamma Bank Debenture 2090", "Debentures"), FakeRow("", "Ordinary Shares")]
        page = FakePage(body=SHARE_DETAILS, rows=rows)
        portal = _portal(page)
        detection = await portal.detect_opportunity("Ordinary Shares")
        assert detection.found

        await portal.read_share_details(detection)

        assert page.clicked == [rows[1]]

    @pytest.mark.asyncio
    async def test_reordered_listing_is_not_applied_for(self) -> None:
        page = FakePage(body=SHARE_DETAILS, rows=[FakeRow("Beta Power Ltd.", "Ordinary Shares")])
        portal = _portal(page)
        detection = await portal.detect_opportunity("Ordinary Shares")
        page.rows = [FakeRow("Epsilon Power Ltd.", "Ordinary Shares"), FakeRow("Beta Power Ltd.", "Ordinary Shares")]

        with pytest.raises(ElementNotFoundError):
            await portal.read_share_details(detection)
        assert page.clicked == []

    @pytest.mark.asyncio
    async def test_closed_issue_is_not_reselected(self) -> None:
        page = FakePage(body=SHARE_DETAILS, rows=[FakeRow("Beta Power Ltd.", "Ordinary Shares")])
        portal = _portal(page)
        detection = await portal.detect_opportunity("Ordinary Shares")
        page.rows = [FakeRow("Beta Power Ltd.", "Ordinary Shares", button="In Process")]

        with pytest.raises(ElementNotFoundError):
            await portal.read_share_details(detection)

    @pytest.mark.asyncio
    async def test_missing_values_raise_not_found(self) -> None:
        page = FakePage(body="Company: Beta Power Ltd.", rows=[FakeRow("Beta Power Ltd.", "Ordinary Shares")])
        portal = _portal(page)
        detection = await portal.detect_opportunity("Ordinary Shares")

        with pytest.raises(ElementNotFoundError):
            await portal.read_share_details(detection)

    @pytest.mark.asyncio
    async def test_requires_detection_first(self) -> None:
        with pytest.raises(ElementNotFoundError):
            await _portal(FakePage(body=SHARE_DETAILS)).read_share_details(Detection(found=True))


def _login_page(error_text: str | None = None, after_login_url: str | None = None) -> FakePage:
    visible = {
        sel.DP_DROPDOWN[0]: FakeElement("Select"),
        sel.USERNAME_INPUT[0]: FakeElement(),
        sel.PASSWORD_INPUT[0]: FakeElement(),
        sel.LOGIN_BUTTON[0]: FakeElement("Login"),
    }
    if error_text is not None:
        visible[sel.LOGIN_ERROR[0]] = FakeElement(error_text)
    return FakePage(visible=visible, after_login_url=after_login_url)


class TestLogin:
    @pytest.mark.asyncio
    async def test_dashboard_means_success(self, account) -> None:
        page = _login_page(after_login_url="https://meroshare.cdsc.com.np/#/dashboard")

        await _portal(page).login(account)

        assert (page.visible[sel.USERNAME_INPUT[0]], account.username) in page.filled

    @pytest.mark.asyncio
    async def test_credential_error_is_rejection(self, account) -> None:
        page = _login_page(error_text="Invalid username or password")

        with pytest.raises(LoginRejectedError):
            await _portal(page).login(account)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_text", [None, "Server busy"])
    async def test_other_failures_are_transient(self, account, error_text) -> None:
        page = _login_page(error_text=error_text)

        with pytest.raises(WorkflowError) as exc_info:
            await _portal(page).login(account)

        assert not isinstance(exc_info.value, LoginRejectedError)


class TestOutcomeSelectors:
    def test_alert_selectors_cover_portal_variants(self) -> None:
        assert '[class*="success-message"]' in sel.SUCCESS_ALERT
        assert ".notification-success" in sel.SUCCESS_ALERT
        assert '[class*="error-message"]' in sel.ERROR_ALERT
        assert ".notification-error" in sel.ERROR_ALERT
        assert ".error-text" in sel.ERROR_ALERT

    def test_form_indicators_include_crn_and_apply(self) -> None:
        assert 'input[placeholder*="CRN" i]' in sel.STILL_ON_FORM
        assert 'button:has-text("Apply")' in sel.STILL_ON_FORM
