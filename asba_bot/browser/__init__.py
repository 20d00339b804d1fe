"""Browser control: isolated sessions and the page capability wrapper."""
from .page import Page, is_closed_error
from .session import BrowserManager

__all__ = ["BrowserManager", "Page", "is_closed_error"]
