from __future__ import annotations


class ValidationFailure(ValueError):
    """A booking draft or day selection that the portal refuses.

    Raised synchronously to the caller; the HTTP layer turns it into a 400.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
