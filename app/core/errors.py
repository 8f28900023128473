"""Case workflow error taxonomy.

Services raise these; app.main renders them into the response envelope
using each class's status_code.
"""


class CaseWorkflowError(Exception):
    """Base class for workflow errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthenticatedError(CaseWorkflowError):
    status_code = 401


class ForbiddenError(CaseWorkflowError):
    """Caller's role or capability does not allow the action, or the lead is not theirs."""

    status_code = 403


class InvalidStageTransition(ForbiddenError):
    """Case is not in a stage the action may start from."""

    def __init__(self, message: str, current_stage: str | None = None):
        super().__init__(message)
        self.current_stage = current_stage


class NotFoundError(CaseWorkflowError):
    status_code = 404


class ValidationFailedError(CaseWorkflowError):
    """Payload passed schema parsing but violates a business rule."""

    status_code = 400


class InvalidStateError(CaseWorkflowError):
    """Action was already performed (pre-auth approved, admission initiated, ...)."""

    status_code = 400


class ConflictError(CaseWorkflowError):
    """A concurrent writer changed the case first, or a unique constraint fired."""

    status_code = 409
