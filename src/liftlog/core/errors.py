"""
Exception hierarchy for liftlog.

Every rejected session transition raises one of these; the CLI maps them
to messages.  Validation errors are correctable by the user, network errors
are retryable, invariant violations are programming errors.
"""


class LiftlogError(Exception):
    """Base class for all liftlog errors."""

    pass


class ValidationError(LiftlogError, ValueError):
    """Raised when user input fails validation (no state change, no network call)."""

    pass


class InvalidTransition(LiftlogError):
    """Raised when an operation is not allowed in the current session state."""

    pass


class OperationInProgress(InvalidTransition):
    """Raised when the same kind of operation is already in flight."""

    pass


class InvariantViolation(LiftlogError):
    """Raised for programming errors such as an unknown queue id."""

    pass


class StaleResponse(LiftlogError):
    """Raised when a response arrives for a session that has since been reset."""

    pass


class NetworkError(LiftlogError):
    """Raised when a backend call fails; state is left unchanged."""

    pass


class CreateFailed(NetworkError):
    """Workout creation failed."""

    pass


class LogFailed(NetworkError):
    """Logging a set failed."""

    pass


class FinishFailed(NetworkError):
    """Finishing a workout failed."""

    pass


class FetchFailed(NetworkError):
    """Reading catalog, routine or history data failed."""

    pass


class RoutineUpdateFailed(NetworkError):
    """Creating or updating a routine failed."""

    pass
