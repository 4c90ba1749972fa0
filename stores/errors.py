# stores/errors.py


class StoreError(Exception):
    """A remote store call failed (network, HTTP status, or bad body)."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
