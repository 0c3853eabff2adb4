"""
OD workflow error hierarchy.

Services raise these; main.py renders them with the standard response
envelope and the status_code carried by each class.
"""


class ODPortalError(Exception):
    """Base exception for all OD workflow errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidODRequest(ODPortalError):
    """Bad dates, short reason or unknown decision."""

    status_code = 400


class NoApplicableStaff(ODPortalError):
    """The student has no classes on any of the requested days."""

    status_code = 400


class RequestNotFound(ODPortalError):
    status_code = 404


class ApprovalNotFound(ODPortalError):
    """No approval entry for the (staff, subject) pair on this request."""

    status_code = 404


class AlreadyResolved(ODPortalError):
    """The approval entry was already approved or rejected.

    Responses are final: there is no revocation or re-approval.
    """

    status_code = 409


class ConcurrentUpdateConflict(ODPortalError):
    """The request kept changing underneath us and the write never landed."""

    status_code = 409
