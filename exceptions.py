from fastapi import HTTPException, status


class BoardError(Exception):
    """Base class for message board failures."""


class StorageError(BoardError):
    """Raised when the backing database fails to execute a statement."""


class ValidationError(BoardError):
    pass


class MissingFieldError(ValidationError):
    def __init__(self, message: str = "Missing required fields in request body"):
        super().__init__(message)


class InvalidFieldError(ValidationError):
    def __init__(self, field: str):
        super().__init__(f"Invalid value for field '{field}'")
        self.field = field


class Exceptions:
    MISSING_THREAD_ID = HTTPException(status.HTTP_400_BAD_REQUEST, "missing thread_id")
