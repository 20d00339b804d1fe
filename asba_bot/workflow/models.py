"""Workflow models, enums, and state."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Stage(Enum):
    """Workflow stages, in execution order."""
    LOGIN = "login"
    NAVIGATE_TO_LISTING = "navigate_to_listing"
    DETECT_OPPORTUNITY = "detect_opportunity"
    VERIFY_ELIGIBILITY = "verify_eligibility"
    SUBMIT_APPLICATION = "submit_application"
    CONFIRM_OUTCOME = "confirm_outcome"
    NOTIFY = "notify"


STAGE_ORDER: list[Stage] = list(Stage)


class FinalStatus(Enum):
    """Outcome of one account's run."""
    NO_OPPORTUNITY = "no_opportunity"
    ALREADY_ACTIONED = "already_actioned"
    SUCCESS = "success"
    FAILED = "failed"
    NEEDS_REVIEW = "needs_review"
    UNKNOWN = "unknown"


class ConfirmationStatus(Enum):
    """What the portal showed after submission."""
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    INDETERMINATE = "indeterminate"


@dataclass
class OpportunityDetails:
    """An open issue as seen on the listing and its detail view."""
    company_name: str = ""
    share_type: str = ""
    share_group: str = ""
    share_value_per_unit: Optional[float] = None
    min_unit: Optional[int] = None


@dataclass
class Detection:
    """Result of inspecting the listing for an open issue."""
    found: bool
    already_applied: bool = False
    details: Optional[OpportunityDetails] = None
    reason: str = ""

    @classmethod
    def none(cls, reason: str = "No Record(s) Found") -> "Detection":
        return cls(found=False, reason=reason)


@dataclass(frozen=True)
class EligibilityCriteria:
    """Values an issue must match exactly to be applied for automatically."""
    share_value_per_unit: float = 100
    min_unit: int = 10


@dataclass
class EligibilityResult:
    """Result of checking an issue against EligibilityCriteria."""
    valid: bool
    reason: str = ""
    share_value_per_unit: Optional[float] = None
    min_unit: Optional[int] = None


@dataclass
class Confirmation:
    """Post-submit classification from the portal."""
    status: ConfirmationStatus
    message: str = ""


@dataclass
class WorkflowState:
    """Mutable state of one account's run. Owned by the coordinator."""
    account: str
    current_stage: Stage = Stage.LOGIN
    opportunity: Optional[OpportunityDetails] = None
    final_status: Optional[FinalStatus] = None
    failure_reason: str = ""
    stages_completed: list[Stage] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.current_stage is Stage.NOTIFY and self.final_status is not None


@dataclass(frozen=True)
class AccountResult:
    """Read-only snapshot of a finished WorkflowState."""
    account: str
    status: FinalStatus
    message: str = ""
    opportunity: Optional[OpportunityDetails] = None

    @classmethod
    def from_state(cls, state: WorkflowState) -> "AccountResult":
        return cls(
            account=state.account,
            status=state.final_status or FinalStatus.UNKNOWN,
            message=state.failure_reason,
            opportunity=state.opportunity,
        )
