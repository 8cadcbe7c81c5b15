# Overview: Domain error taxonomy shared by services and routes.

"""
Every error carries the HTTP status it maps to so routes and the webhook
gateway can translate it without a lookup table.

- MalformedPayloadError: body is not parseable into the expected JSON shape
- ValidationError: well-formed but semantically incomplete input
- AuthenticationError: unknown webhook key / bad credentials
- AuthorizationError: inactive webhook configuration
- NotFoundError: serial or row does not exist for this tenant
- InvalidAmountError: payment exceeds remaining balance (or is not positive)
- PersistenceError: the store rejected a write (retryable or fatal)
"""


class OrderDeskError(Exception):
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MalformedPayloadError(OrderDeskError):
    status_code = 400


class ValidationError(OrderDeskError):
    status_code = 400


class AuthenticationError(OrderDeskError):
    status_code = 401


class AuthorizationError(OrderDeskError):
    status_code = 403


class NotFoundError(OrderDeskError):
    status_code = 404


class InvalidAmountError(OrderDeskError):
    status_code = 400


class PersistenceError(OrderDeskError):
    status_code = 500

    def __init__(self, message: str, *, retryable: bool = False, details: dict | None = None):
        super().__init__(message, details)
        self.retryable = retryable


def error_body(exc: OrderDeskError) -> dict:
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return body
