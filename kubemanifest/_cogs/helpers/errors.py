"""
Errors of the reconciliation itself (not of the API).

The API errors live in :mod:`kubemanifest._cogs.clients.errors`; they are
raised by the API calls and are escalated as is. The errors here are raised
by the reconciler when the inputs are wrong or the objects never converge.

Every error carries enough context in its message (the kind, the name,
the operation phase) to be understood without the debug logs.
"""
from typing import Optional


class ReconciliationError(Exception):
    """ A base class for all non-API errors of the reconciler. """

    # The tracking key of the object, if known at the moment of failure.
    key: Optional[str] = None


class ParseError(ReconciliationError):
    """ The manifest text is not a valid structured object. """


class IdFormatError(ReconciliationError, ValueError):
    """ The tracking key cannot be split into its identity fields. """


class PatchComputationError(ReconciliationError):
    """ The patch cannot be computed: e.g. serialization failures. """


class RolloutError(ReconciliationError):
    """ A kind-specific readiness check has failed unrecoverably. """


class WaitTimeoutError(ReconciliationError, TimeoutError):
    """
    The object has not reached its target state within the deadline.

    The last observed state is kept for diagnostics.
    """

    def __init__(
            self,
            message: str,
            *,
            key: Optional[str] = None,
            state: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.key = key
        self.state = state


class WaitInterruptedError(ReconciliationError):
    """ The wait was stopped from outside before reaching the target state. """


class OperationError(ReconciliationError):
    """
    A remote call has failed in one of the phases of a reconciliation call.

    The original API error is kept as the cause (``__cause__``) and in ``.error``,
    so that the callers can distinguish e.g. the conflicts from the absences.
    """

    def __init__(
            self,
            message: str,
            *,
            phase: str,
            key: Optional[str] = None,
            error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.phase = phase
        self.key = key
        self.error = error
