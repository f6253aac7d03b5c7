"""Domain errors raised by the data and workflow layers.

All of them are ``ValueError`` subclasses so call sites can keep the plain
``except ValueError`` translation into an HTTP status; ``status_code`` tells
the route which one to use.
"""


class DomainError(ValueError):
    status_code = 400


class ValidationFailed(DomainError):
    status_code = 400


class Conflict(DomainError):
    # duplicates are reported like any other validation failure
    status_code = 400


class InvalidTransition(DomainError):
    status_code = 400


class AuthenticationFailed(DomainError):
    status_code = 401


class AccountInactive(DomainError):
    status_code = 403


class NotFound(DomainError):
    status_code = 404
