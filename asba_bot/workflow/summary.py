"""Consolidated result of a multi-account run."""
from dataclasses import dataclass, field
from typing import Optional

from .models import AccountResult, FinalStatus, OpportunityDetails


@dataclass
class RunSummary:
    """Per-account results of one run, grouped by final status."""
    results: list[AccountResult] = field(default_factory=list)

    def by_status(self, status: FinalStatus) -> list[AccountResult]:
        return [r for r in self.results if r.status is status]

    def counts(self) -> dict[FinalStatus, int]:
        return {status: len(self.by_status(status)) for status in FinalStatus}

    @property
    def failures(self) -> list[AccountResult]:
        return self.by_status(FinalStatus.FAILED)

    @property
    def nothing_open(self) -> bool:
        """True when every account found no opportunity."""
        return bool(self.results) and all(
            r.status is FinalStatus.NO_OPPORTUNITY for r in self.results
        )

    @property
    def needs_attention(self) -> bool:
        return any(
            r.status in (FinalStatus.FAILED, FinalStatus.UNKNOWN, FinalStatus.NEEDS_REVIEW)
            for r in self.results
        )

    @property
    def opportunity(self) -> Optional[OpportunityDetails]:
        """First opportunity any account saw, for the message header."""
        for result in self.results:
            if result.opportunity is not None and result.opportunity.company_name:
                return result.opportunity
        return None

    @property
    def error(self) -> Optional[str]:
        """Run-level error naming only the accounts that failed."""
        failed = self.failures
        if not failed:
            return None
        return f"{len(failed)} account(s) failed: {', '.join(r.account for r in failed)}"

    @property
    def exit_code(self) -> int:
        return 1 if self.error else 0
