class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when a generation request is invalid before any allocation work starts."""
    def __init__(self, message: str, details: dict = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)

class EmptyCatalogError(SchedulerError):
    """Raised when a class has no active subjects to schedule."""
    def __init__(self, class_name: str):
        super().__init__(
            f"No subjects found for class {class_name}",
            details={"class_name": class_name},
            status_code=404,
        )

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class TimetableConflictError(AppError):
    """Raised when a manual entry or saved grid collides with stored entries."""
    def __init__(self, message: str, conflicts: list[dict]):
        super().__init__(message, status_code=409, details={"conflicts": conflicts})

class PersistenceError(AppError):
    """Raised when a timetable write did not complete; stored data is unchanged."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
