class LostFoundError(Exception):
    """Base class for domain errors; `status_code` is what the API responds with."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(LostFoundError):
    status_code = 400


class AuthorizationError(LostFoundError):
    status_code = 403


class NotFound(LostFoundError):
    status_code = 404


class ItemNotClaimable(LostFoundError):
    status_code = 409


class InvalidState(LostFoundError):
    status_code = 409


class StorageFailure(LostFoundError):
    status_code = 502


class NotificationFailure(LostFoundError):
    """Raised by the SMS dispatcher; never surfaced by a decision."""

    status_code = 502
