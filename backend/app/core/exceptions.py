class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when prerequisite data or the requested scope is missing; generation never starts."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ScopeConflictError(AppError):
    """Raised when schedule entries already exist for the target (school year, semester)."""
    def __init__(self, school_year_id: str, semester: str, existing_count: int):
        super().__init__(
            f"{existing_count} schedule entries already exist for school year {school_year_id}, "
            f"semester {semester}. Delete them before generating again.",
            status_code=409,
            details={
                "school_year_id": school_year_id,
                "semester": semester,
                "existing_count": existing_count,
            },
        )


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)


class PersistenceError(AppError):
    """Raised by the schedule gateway when a single entry cannot be saved or deleted."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)


class OperationCancelled(Exception):
    """Raised by the schedule gateway when the cancellation token trips during a write."""


class RunAlreadyActiveError(AppError):
    """Raised when a run id is registered while a run with the same id is still active."""
    def __init__(self, run_id: str):
        super().__init__(
            f"Run {run_id} is already active",
            status_code=409,
            details={"run_id": run_id},
        )
