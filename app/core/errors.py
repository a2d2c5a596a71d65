"""
Error taxonomy for the airtime giveaway.

Every error that can reach a caller derives from ``AirtimeError`` and carries
the HTTP status and machine-readable code it is rendered with. ``app.main``
registers the handler that turns them into ``{success, message, error_code}``.
"""


class AirtimeError(Exception):
    status_code = 500
    error_code = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred. Please try again later."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AirtimeError):
    status_code = 400
    error_code = "INVALID_INPUT"
    default_message = "Invalid phone number"


class AlreadyServedError(AirtimeError):
    status_code = 403
    error_code = "ALREADY_SERVED"
    default_message = "This number has already received airtime."


class DatabaseNotConfiguredError(AirtimeError):
    status_code = 500
    error_code = "DATABASE_NOT_CONFIGURED"
    default_message = (
        "Airtime database is not set up. Run scripts/setup_db.py or enable "
        "AUTO_CREATE_TABLES=true once and redeploy."
    )


class RelationConstraintError(AirtimeError):
    status_code = 500
    error_code = "RELATION_CONSTRAINT"
    default_message = "Transaction references a phone number that is not registered."


class InvalidStatusError(AirtimeError, ValueError):
    status_code = 500
    error_code = "INVALID_STATUS"
    default_message = "Invalid transaction status."


class UnexpectedError(AirtimeError):
    pass


_MISSING_RELATION_HINTS = ("no such table", "does not exist", "undefinedtable", "undefined table")


def is_missing_relation(exc: BaseException) -> bool:
    text = f"{type(getattr(exc, 'orig', None)).__name__} {exc}".lower()
    return any(hint in text for hint in _MISSING_RELATION_HINTS)
