class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class UnknownTargetError(DomainError):
    """Exception raised when a compile target name is not supported."""

    def __init__(self, target: str) -> None:
        super().__init__(f"Unsupported compile target: {target}")
        self.target = target


class CompilerServiceError(DomainError):
    """Exception raised when the remote compiler service cannot be used.

    Carries the already-normalized, user-displayable message and the HTTP
    status code when a response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
