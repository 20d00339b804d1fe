"""Per-account workflow: login through confirmation.

State Diagram:
    LOGIN -> NAVIGATE_TO_LISTING -> DETECT_OPPORTUNITY -> VERIFY_ELIGIBILITY
          -> SUBMIT_APPLICATION -> CONFIRM_OUTCOME -> NOTIFY

Any stage may jump straight to NOTIFY, either with a terminal non-error
outcome (nothing open, already applied, needs review) or with an error that
is classified into FAILED or UNKNOWN.
"""
import logging
from typing import Optional

from ..accounts import UserCredentialSet
from ..core.config import Settings
from ..retry import RetryExecutor, RetryExhausted
from .eligibility import verify_eligibility
from .errors import NON_RETRYABLE, InvalidStageTransitionError, SessionClosedError
from .models import (
    STAGE_ORDER,
    ConfirmationStatus,
    Detection,
    EligibilityCriteria,
    FinalStatus,
    Stage,
    WorkflowState,
)
from .ports import Portal

logger = logging.getLogger(__name__)

# A closed session in these stages may hide a submission that went through.
POST_SUBMIT_STAGES: frozenset[Stage] = frozenset(
    {Stage.SUBMIT_APPLICATION, Stage.CONFIRM_OUTCOME}
)

SESSION_CLOSED_MESSAGE = (
    "Page closed unexpectedly. IPO may or may not have been submitted - "
    "please verify application status manually."
)


class WorkflowCoordinator:
    """Drives one account through the fixed stage sequence.

    Every stage call goes through the RetryExecutor with that stage's
    policy. run() never raises: errors are classified into the returned
    state's final_status and failure_reason.
    """

    def __init__(
        self,
        portal: Portal,
        settings: Settings,
        executor: Optional[RetryExecutor] = None,
    ) -> None:
        self._portal = portal
        self._settings = settings
        self._executor = executor or RetryExecutor(give_up_on=NON_RETRYABLE)
        self._retry = settings.retry
        self._criteria = EligibilityCriteria(
            share_value_per_unit=settings.eligibility.share_value_per_unit,
            min_unit=settings.eligibility.min_unit,
        )

    async def run(self, account: UserCredentialSet) -> WorkflowState:
        """Run every stage for ``account`` and return its final state."""
        state = WorkflowState(account=account.name)
        completed = True
        try:
            await self._drive(state, account)
        except Exception as e:
            completed = False
            self._classify_error(state, e)

        if state.final_status is None:
            self._finish(state, FinalStatus.UNKNOWN, "Workflow ended without an outcome")
        self._enter(state, Stage.NOTIFY, completed=completed)
        return state

    def _enter(self, state: WorkflowState, stage: Stage, completed: bool = True) -> None:
        """Move forward to ``stage``; the stage being left is recorded only if it completed."""
        current = STAGE_ORDER.index(state.current_stage)
        target = STAGE_ORDER.index(stage)
        if target < current:
            raise InvalidStageTransitionError(
                f"Invalid stage transition: {state.current_stage.value} -> {stage.value}"
            )
        if target == current:
            return
        if completed:
            state.stages_completed.append(state.current_stage)
        state.current_stage = stage
        logger.debug(f"{state.account}: entering {stage.value}")

    def _finish(self, state: WorkflowState, status: FinalStatus, reason: str = "") -> None:
        state.final_status = status
        state.failure_reason = reason
        logger.info(
            f"{state.account}: {status.value} at {state.current_stage.value}"
            + (f" - {reason}" if reason else "")
        )

    def _classify_error(self, state: WorkflowState, error: Exception) -> None:
        root = error.last_error if isinstance(error, RetryExhausted) else error
        closed = isinstance(root, SessionClosedError) or not self._portal.is_session_active()

        if closed and state.current_stage in POST_SUBMIT_STAGES:
            self._finish(state, FinalStatus.UNKNOWN, SESSION_CLOSED_MESSAGE)
            return

        logger.error(f"{state.account}: error during {state.current_stage.value}: {root}")
        self._finish(state, FinalStatus.FAILED, str(root) or type(root).__name__)

    async def _drive(self, state: WorkflowState, account: UserCredentialSet) -> None:
        await self._login(account)

        self._enter(state, Stage.NAVIGATE_TO_LISTING)
        await self._executor.execute(
            self._portal.open_listing, self._retry.listing.to_policy(), label="open_listing"
        )

        self._enter(state, Stage.DETECT_OPPORTUNITY)
        detection = await self._detect()
        state.opportunity = detection.details
        if not detection.found:
            if detection.already_applied:
                self._finish(state, FinalStatus.ALREADY_ACTIONED, detection.reason or "IPO already applied")
            else:
                self._finish(state, FinalStatus.NO_OPPORTUNITY, detection.reason)
            return

        self._enter(state, Stage.VERIFY_ELIGIBILITY)
        if not await self._verify(state, account, detection):
            return

        self._enter(state, Stage.SUBMIT_APPLICATION)
        await self._submit(account)

        self._enter(state, Stage.CONFIRM_OUTCOME)
        await self._confirm(state)

    async def _login(self, account: UserCredentialSet) -> None:
        await self._portal.open_login()

        async def attempt() -> None:
            await self._portal.login(account)

        async def on_retry(error: BaseException, attempt_no: int) -> None:
            logger.info(f"{account.name}: login attempt {attempt_no} failed: {error}. Reloading...")
            await self._portal.reload()

        await self._executor.execute(
            attempt, self._retry.login.to_policy(), on_retry=on_retry, label="login"
        )

    async def _detect(self) -> Detection:
        share_type = self._settings.portal.share_type

        async def attempt() -> Detection:
            return await self._portal.detect_opportunity(share_type)

        return await self._executor.execute(
            attempt, self._retry.detect.to_policy(), label="detect_opportunity"
        )

    async def _verify(
        self, state: WorkflowState, account: UserCredentialSet, detection: Detection
    ) -> bool:
        """Return True when the application should go ahead."""

        async def attempt():
            return await self._portal.read_share_details(detection)

        details = await self._executor.execute(
            attempt, self._retry.verify.to_policy(), label="read_share_details"
        )
        state.opportunity = details

        result = verify_eligibility(details, self._criteria)
        if not result.valid:
            self._finish(state, FinalStatus.NEEDS_REVIEW, f"IPO needs manual review: {result.reason}")
            return False

        if not account.can_auto_apply:
            missing = ", ".join(account.missing_apply_fields())
            self._finish(state, FinalStatus.NEEDS_REVIEW, f"Missing required credentials ({missing})")
            return False

        await self._executor.execute(
            self._portal.return_to_listing, self._retry.listing.to_policy(), label="return_to_listing"
        )
        return True

    async def _submit(self, account: UserCredentialSet) -> None:
        async def attempt() -> None:
            await self._portal.submit_application(account)

        async def on_retry(error: BaseException, attempt_no: int) -> None:
            logger.info(f"{account.name}: application attempt {attempt_no} failed: {error}. Retrying...")
            await self._portal.return_to_listing()

        await self._executor.execute(
            attempt, self._retry.submit.to_policy(), on_retry=on_retry, label="submit_application"
        )

    async def _confirm(self, state: WorkflowState) -> None:
        if not self._portal.is_session_active():
            raise SessionClosedError("Session closed before the outcome could be read")

        confirmation = await self._executor.execute(
            self._portal.read_outcome, self._retry.confirm.to_policy(), label="read_outcome"
        )
        if confirmation.status is ConfirmationStatus.CONFIRMED:
            self._finish(state, FinalStatus.SUCCESS, confirmation.message or "Application submitted")
        elif confirmation.status is ConfirmationStatus.REJECTED:
            self._finish(state, FinalStatus.FAILED, confirmation.message or "Application failed")
        else:
            self._finish(state, FinalStatus.UNKNOWN, confirmation.message)
