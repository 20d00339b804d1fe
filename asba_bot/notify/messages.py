"""Telegram message text for run results."""
import re
from datetime import datetime
from typing import Optional

from ..workflow.models import AccountResult, FinalStatus
from ..workflow.summary import RunSummary

PORTAL_HOST = "meroshare.cdsc.com.np"

_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """Escape characters that legacy Telegram Markdown treats as markup."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def _section(
    title: str, results: list[AccountResult], with_reason: bool
) -> list[str]:
    if not results:
        return []
    lines = [f"{title} ({len(results)})*"]
    for r in results:
        name = escape_markdown(r.account)
        if with_reason and r.message:
            lines.append(f"  • {name}: {escape_markdown(r.message)}")
        else:
            lines.append(f"  • {name}")
    lines.append("")
    return lines


def format_run_summary(
    summary: RunSummary,
    now: Optional[datetime] = None,
    share_type: str = "Ordinary Shares",
) -> str:
    """Build the consolidated message for a finished run.

    Args:
        summary: Results of every account.
        now: Timestamp for the footer; defaults to the current time.
        share_type: Listing filter the run checked, named in the "no IPO" text.
    """
    if summary.nothing_open:
        return (
            "ℹ️ *No IPO Today* 🤦‍♀️\n\n"
            f"Checked for {len(summary.results)} user(s) - No {escape_markdown(share_type)} IPO available."
        )

    lines: list[str] = []
    opportunity = summary.opportunity
    if opportunity is not None:
        lines.append(f"🏢 *{escape_markdown(opportunity.company_name)}*")
        if opportunity.share_group:
            lines.append(f"Share Group: {escape_markdown(opportunity.share_group)}")
        if opportunity.share_value_per_unit is not None:
            lines.append(f"Share Value Per Unit: {opportunity.share_value_per_unit:g}")
        if opportunity.min_unit is not None:
            lines.append(f"Min Unit: {opportunity.min_unit}")
        lines.append("")

    lines += _section("✅ *Applied Successfully", summary.by_status(FinalStatus.SUCCESS), False)
    lines += _section("✅ *Already Applied", summary.by_status(FinalStatus.ALREADY_ACTIONED), False)
    lines += _section("❌ *Failed", summary.by_status(FinalStatus.FAILED), True)
    lines += _section("⚠️ *Needs Manual Review", summary.by_status(FinalStatus.NEEDS_REVIEW), True)
    lines += _section("❓ *Status Unknown", summary.by_status(FinalStatus.UNKNOWN), True)
    lines += _section("ℹ️ *No IPO", summary.by_status(FinalStatus.NO_OPPORTUNITY), False)

    if summary.needs_attention:
        lines.append(f"⚠️ Please verify at {PORTAL_HOST}")
        lines.append("")
    lines.append(f"_Time: {_timestamp(now)}_")
    return "\n".join(lines)


def format_no_accounts(now: Optional[datetime] = None) -> str:
    return (
        "❌ *Error Occurred*\n\n"
        "Error: No valid users configured for IPO automation.\n"
        f"Time: {_timestamp(now)}"
    )
