"""Workflow error taxonomy.

Transient errors (anything not listed as terminal) are retried per policy.
TerminalError subclasses are never retried. SessionClosedError marks the
indeterminate case where the remote session died before an outcome was seen.
"""


class WorkflowError(Exception):
    """Base exception for all workflow-specific errors."""

    pass


class TerminalError(WorkflowError):
    """A definitive rejection; retrying cannot change the answer."""

    pass


class LoginRejectedError(TerminalError):
    """Raised when the portal rejects the supplied credentials."""

    pass


class SubmissionRejectedError(TerminalError):
    """Raised when the portal shows an error after the form is submitted."""

    pass


class ListingNotReadyError(WorkflowError):
    """Raised when the listing shows neither an opportunity nor an empty marker."""

    pass


class ElementNotFoundError(WorkflowError):
    """Raised when none of a set of selectors matches a visible element."""

    pass


class SessionClosedError(WorkflowError):
    """Raised when the page, context or browser has been closed."""

    pass


class InvalidStageTransitionError(WorkflowError):
    """Raised when the coordinator is asked to move to an earlier stage."""

    pass


# Errors the retry executor must re-raise at once instead of retrying.
NON_RETRYABLE: tuple[type[Exception], ...] = (TerminalError, SessionClosedError)
