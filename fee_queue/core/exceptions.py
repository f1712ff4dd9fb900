from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed or missing input (e.g. non-positive amount)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(ServiceError):
    """Referenced counter, fee type, account or queue entry does not exist."""

    # Surfaced as 400: the caller sent an id that does not resolve
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class InvalidStateError(ServiceError):
    """Transition attempted on a terminal or already-claimed queue entry."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class InvalidCredentialsError(ServiceError):
    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class InvalidTokenError(ServiceError):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class InactiveAccountError(ServiceError):
    def __init__(self, message: str = "User not found or inactive") -> None:
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class StorageError(ServiceError):
    """Underlying persistence failure."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
