"""Collaborator interfaces the workflow depends on."""
from typing import Protocol

from ..accounts import UserCredentialSet
from .models import Confirmation, Detection, OpportunityDetails


class Portal(Protocol):
    """Stage-level operations against the brokerage portal.

    Implementations raise LoginRejectedError / SubmissionRejectedError for
    definitive rejections, SessionClosedError when the session is gone, and
    any other exception for transient trouble.
    """

    def is_session_active(self) -> bool: ...

    async def reload(self) -> None: ...

    async def open_login(self) -> None: ...

    async def login(self, account: UserCredentialSet) -> None: ...

    async def open_listing(self) -> None: ...

    async def detect_opportunity(self, share_type: str) -> Detection: ...

    async def read_share_details(self, detection: Detection) -> OpportunityDetails: ...

    async def return_to_listing(self) -> None: ...

    async def submit_application(self, account: UserCredentialSet) -> None: ...

    async def read_outcome(self) -> Confirmation: ...


class NotificationSink(Protocol):
    """Delivers a text message; never raises."""

    async def send(self, destination: str, message: str) -> bool: ...
