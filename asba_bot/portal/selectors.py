"""Selectors and text patterns for the MeroShare web portal."""
import re

LOGIN_FORM: list[str] = [
    "form",
    "input#username",
    "select2#selectBranch",
    'input[type="text"]',
]
DP_DROPDOWN: list[str] = [
    "#selectBranch",
    "span.select2-selection",
    'span.select2-container:has-text("Select")',
]
DP_SEARCH_INPUT: list[str] = [
    "input.select2-search__field",
    ".select2-search input",
]
DP_OPTION: str = "li.select2-results__option"
USERNAME_INPUT: list[str] = ["input#username", 'input[name*="username" i]']
PASSWORD_INPUT: list[str] = ["input#password", 'input[type="password"]']
LOGIN_BUTTON: list[str] = [
    'button[type="submit"]:has-text("Login")',
    'button:has-text("Login")',
    'button[type="submit"]',
]
LOGIN_ERROR: list[str] = [".toast-error", ".alert-danger", '[role="alert"]', ".error"]

MY_ASBA_LINK: list[str] = [
    'a[href="#/asba"]',
    'a:has-text("My ASBA")',
    'span:has-text("My ASBA")',
]
APPLY_FOR_ISSUE_TAB: list[str] = [
    'a:has-text("Apply for Issue")',
    'span:has-text("Apply for Issue")',
]
LISTING_READY: list[str] = [".company-list", "app-no-records-found", "table", ".table"]
ISSUE_ROW: str = ".company-list"
ROW_APPLY_BUTTON: str = 'button:has-text("Apply")'
ROW_APPLIED_BUTTON: str = 'button:has-text("Edit"), button:has-text("In Process")'
ROW_COMPANY_NAME: str = ".company-name span, .company-name"
ROW_SHARE_TYPE: str = ".share-of-type, .isin"
ROW_SHARE_GROUP: str = ".share-group"

BANK_SELECT: list[str] = ["select#selectBank", 'select[name*="bank" i]', 'select[id*="bank" i]']
ACCOUNT_SELECT: list[str] = [
    "select#accountNumber",
    'select[name*="account" i]',
    'select[id*="account" i]',
]
KITTA_INPUT: list[str] = [
    "input#appliedKitta",
    'input[placeholder*="kitta" i]',
    'input[name*="kitta" i]',
    'input[id*="kitta" i]',
]
CRN_INPUT: list[str] = [
    "input#crnNumber",
    'input[placeholder*="CRN" i]',
    'input[name*="crn" i]',
    'input[id*="crn" i]',
]
DECLARATION_CHECKBOX: list[str] = [
    "input#disclaimer",
    'input[type="checkbox"][name*="declare" i]',
    'input[type="checkbox"]',
]
PROCEED_BUTTON: list[str] = [
    'button[type="submit"]:has-text("Proceed")',
    'button:has-text("Proceed")',
]
PIN_INPUT: list[str] = [
    "input#transactionPIN",
    'input[placeholder="Enter Pin"]',
    'input[placeholder*="PIN" i]',
    'input[type="password"]',
]
FINAL_APPLY_BUTTON: list[str] = [
    'button[type="submit"]:has-text("Apply")',
    'button:has-text("Apply")',
]

SUCCESS_ALERT: list[str] = [
    ".alert-success",
    ".toast-success",
    '[class*="success-message"]',
    ".swal2-success",
    ".notification-success",
]
ERROR_ALERT: list[str] = [
    ".alert-danger",
    ".alert-error",
    ".toast-error",
    '[class*="error-message"]',
    ".swal2-error",
    ".notification-error",
    ".error-text",
]
STILL_ON_FORM: list[str] = [
    'input[placeholder*="PIN" i]',
    'input[placeholder*="CRN" i]',
    'button:has-text("Proceed")',
    'button:has-text("Apply")',
]

NO_RECORD_PATTERN = re.compile(r"No Record", re.IGNORECASE)
SHARE_VALUE_PATTERN = re.compile(r"Share Value Per Unit\s*:?\s*(?:Rs\.?\s*)?([\d,]+(?:\.\d+)?)", re.IGNORECASE)
MIN_UNIT_PATTERN = re.compile(r"Min(?:imum)?\s*Unit\s*:?\s*([\d,]+)", re.IGNORECASE)

SUCCESS_PATTERNS: list[re.Pattern] = [
    re.compile(r"IPO\s+(has\s+been\s+)?applied\s+successfully", re.IGNORECASE),
    re.compile(r"application\s+(has\s+been\s+)?submitted\s+successfully", re.IGNORECASE),
    re.compile(r"successfully\s+applied", re.IGNORECASE),
    re.compile(r"your\s+application\s+has\s+been\s+submitted", re.IGNORECASE),
    re.compile(r"application\s+successful", re.IGNORECASE),
    re.compile(r"share\s+has\s+been\s+applied", re.IGNORECASE),
]

REJECTION_PATTERNS: list[re.Pattern] = [
    re.compile(r"already\s+(applied|submitted)", re.IGNORECASE),
    re.compile(r"duplicate\s+application", re.IGNORECASE),
    re.compile(r"application\s+(has\s+)?failed", re.IGNORECASE),
    re.compile(r"error\s+(occurred|processing)", re.IGNORECASE),
    re.compile(r"invalid\s+(PIN|CRN|account)", re.IGNORECASE),
    re.compile(r"insufficient\s+balance", re.IGNORECASE),
    re.compile(r"transaction\s+failed", re.IGNORECASE),
    re.compile(r"unable\s+to\s+(process|submit)", re.IGNORECASE),
    re.compile(r"please\s+try\s+again", re.IGNORECASE),
    re.compile(r"something\s+went\s+wrong", re.IGNORECASE),
    re.compile(r"server\s+error", re.IGNORECASE),
    re.compile(r"session\s+expired", re.IGNORECASE),
    re.compile(r"not\s+eligible", re.IGNORECASE),
    re.compile(r"quota\s+exceeded", re.IGNORECASE),
    re.compile(r"limit\s+(exceeded|reached)", re.IGNORECASE),
]
