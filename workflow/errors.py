# errors.py
# Failure taxonomy surfaced by workflow intents.

from typing import Optional


class WorkflowError(Exception):
    """Base class for every failure an intent can surface."""


class ClientValidationError(WorkflowError):
    """Rejected locally; nothing was sent to the backend."""


class AuthorizationError(WorkflowError):
    """Missing or refused session credential. Never retried."""


class BackendRejection(WorkflowError):
    """Structured refusal from the backend; the message is shown verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PartialAwardError(BackendRejection):
    """Award came back only partly applied; refetch and retry."""


class TransportError(WorkflowError):
    """Network failure or hung call. The user must re-invoke the action."""

    def __init__(self, message: str = "Could not reach the server. Please try again."):
        super().__init__(message)
        self.message = message


class InvalidTransition(ClientValidationError):
    """The requested move is not allowed from the current sub-workflow state."""


class FeedbackPacketError(ClientValidationError):
    """A prototype feedback packet failed its shape or count limits."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))
