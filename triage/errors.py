"""
Error taxonomy for the reading triage system.

The service layer turns any TriageError into a structured error response.
"""


class TriageError(Exception):
    """Base class for errors reported to callers of the triage core."""


class ValidationError(TriageError, ValueError):
    """Input rejected before anything was written."""


class ConflictError(TriageError):
    """A write referenced a document that does not exist."""


class RemoteTransportError(TriageError):
    """A call to a remote collaborator failed or returned garbage."""


class ConcurrencyBusyError(TriageError):
    """A sync was requested while another one is running."""


class NotFoundError(TriageError):
    """The requested item does not exist."""
