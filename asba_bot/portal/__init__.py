"""Site adapter for the MeroShare portal."""
from .meroshare import MeroSharePortal, classify_outcome, parse_share_details

__all__ = ["MeroSharePortal", "classify_outcome", "parse_share_details"]
