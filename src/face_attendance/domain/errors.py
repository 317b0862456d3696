"""Domain exceptions."""


class InvalidInputError(ValueError):
    """Raised when a caller violates an input contract."""


class EmployeeNotFoundError(InvalidInputError):
    """Raised when an employee id does not exist."""

    def __init__(self, employee_id: int) -> None:
        super().__init__(f"Employee {employee_id} not found")
        self.employee_id = employee_id


class DuplicateEmployeeError(ValueError):
    """Raised when an employee with the same email already exists."""


class StorageUnavailableError(RuntimeError):
    """Raised when the backing store cannot be reached."""


class StorageTimeoutError(StorageUnavailableError):
    """Raised when a storage call exceeds its deadline."""


class SessionConflictError(RuntimeError):
    """Raised when a concurrent writer changed a session under us."""


class InconsistentStateError(RuntimeError):
    """Raised when persisted sessions violate ledger invariants."""


class EmbeddingError(RuntimeError):
    """Base error for embedding provider failures."""


class ModelUnavailableError(EmbeddingError):
    """Raised when the embedding model cannot serve requests."""


class NoFaceFoundError(EmbeddingError):
    """Raised when no face is present in the image."""


class MultipleFacesFoundError(EmbeddingError):
    """Raised when more than one face is present in the image."""
