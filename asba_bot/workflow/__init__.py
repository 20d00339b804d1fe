"""Workflow: per-account state machine and run-level results."""
from .coordinator import WorkflowCoordinator
from .eligibility import verify_eligibility
from .models import (
    AccountResult,
    Confirmation,
    ConfirmationStatus,
    Detection,
    EligibilityCriteria,
    EligibilityResult,
    FinalStatus,
    OpportunityDetails,
    Stage,
    WorkflowState,
)
from .summary import RunSummary

__all__ = [
    "WorkflowCoordinator",
    "RunSummary",
    "verify_eligibility",
    "AccountResult",
    "Confirmation",
    "ConfirmationStatus",
    "Detection",
    "EligibilityCriteria",
    "EligibilityResult",
    "FinalStatus",
    "OpportunityDetails",
    "Stage",
    "WorkflowState",
]
