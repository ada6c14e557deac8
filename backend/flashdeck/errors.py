"""Error types shared by the study engine, the stores and the routers."""


class ConfigurationError(Exception):
    """Raised when a deck cannot be studied with the requested settings."""

    pass


class AuthorizationError(Exception):
    """Raised when the requesting user does not own the deck."""

    pass


class StoreError(Exception):
    """Raised when the card status store cannot be read or written."""

    def __init__(self, message: str, operation: str | None = None):
        self.message = message
        self.operation = operation
        super().__init__(self.message)


class ParseError(Exception):
    """Raised when bulk import input cannot be parsed at all."""

    pass


class InvalidActionError(Exception):
    """Raised when a session action is not valid in the current phase."""

    pass
