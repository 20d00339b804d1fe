"""Eligibility check for an open issue."""
import logging
from typing import Optional

from .models import EligibilityCriteria, EligibilityResult, OpportunityDetails

logger = logging.getLogger(__name__)


def verify_eligibility(
    details: Optional[OpportunityDetails],
    criteria: EligibilityCriteria,
) -> EligibilityResult:
    """Compare an issue's share value and minimum unit against criteria.

    Both values must match exactly. A value that could not be read off the
    portal makes the issue ineligible.

    Args:
        details: Values scraped from the issue's detail view.
        criteria: Required share value per unit and minimum unit.

    Returns:
        EligibilityResult with a reason naming every mismatched field.
    """
    share_value = details.share_value_per_unit if details else None
    min_unit = details.min_unit if details else None

    problems: list[str] = []
    if share_value is None:
        problems.append("Share Value Per Unit could not be read")
    elif share_value != criteria.share_value_per_unit:
        problems.append(
            f"Share Value Per Unit is {_fmt(share_value)}, "
            f"expected {_fmt(criteria.share_value_per_unit)}"
        )

    if min_unit is None:
        problems.append("Min Unit could not be read")
    elif min_unit != criteria.min_unit:
        problems.append(f"Min Unit is {min_unit}, expected {criteria.min_unit}")

    if problems:
        reason = "; ".join(problems)
        logger.info(f"Issue not eligible for auto-apply: {reason}")
        return EligibilityResult(False, reason, share_value, min_unit)

    return EligibilityResult(True, "", share_value, min_unit)


def _fmt(value: float) -> str:
    return f"{value:g}"
