"""Exception taxonomy for triage runs.

Setup errors abort the whole run. Record errors are caught at the per-case
boundary and the run moves on to the next case.
"""

from typing import Optional


class TriageError(Exception):
    """Base error; `details` carries a response body or stderr when available."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class SetupError(TriageError):
    """Fatal: raised before any case is processed."""


class ConfigError(SetupError):
    pass


class IdentityError(SetupError):
    pass


class CrmAuthError(SetupError):
    pass


class CrmQueryError(SetupError):
    pass


class RecordError(TriageError):
    """Recoverable: affects a single case only."""


class SessionError(RecordError):
    pass


class ClassificationError(RecordError):
    pass


class ClassificationNotFoundError(ClassificationError):
    """The event stream held no terminal result."""


class InvalidResultError(RecordError):
    pass


class UnexpectedStatusError(RecordError):
    pass


class CrmUpdateError(RecordError):
    pass
