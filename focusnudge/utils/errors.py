"""Error taxonomy for the reminder engine."""


class ReminderError(Exception):
    """Base class for errors raised by the reminder engine."""


class NotFoundError(ReminderError):
    """A reminder, task or session id does not resolve."""

    def __init__(self, kind: str, ident: object):
        super().__init__(f"{kind} {ident} not found")
        self.kind = kind
        self.ident = ident


class ValidationError(ReminderError):
    """A request was malformed; raised before anything is written."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class AuthorizationError(ReminderError):
    """The caller does not own the resource, or has no resolvable user."""


class TransientStoreError(ReminderError):
    """The store was unreachable or timed out."""


class NotificationSinkFailure(ReminderError):
    """A notification could not be delivered. Logged, never propagated."""
