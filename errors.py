TRANSIENT_MESSAGE = "transient error"


class InvalidInput(ValueError):
    """A field failed validation; the store is never contacted."""


class OperationFailed(Exception):
    """Backend or connectivity failure, safe for the caller to retry."""

    def __init__(self, message: str = TRANSIENT_MESSAGE):
        super().__init__(message)
        self.message = message
