"""Security-layer exceptions. Typed, no HTTP."""


class SecurityError(Exception):
    """Base for all security-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthorizationError(SecurityError):
    """Raised when an actor's role level does not permit the requested role change."""


class PasscodeHashError(SecurityError):
    """Raised when a stored passcode hash cannot be parsed."""
