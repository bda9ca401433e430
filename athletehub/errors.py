# athletehub/errors.py
from __future__ import annotations


class ServiceError(Exception):
    """Base for failures a service reports to its caller as a typed error."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(ServiceError):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class StoreUnavailable(ServiceError):
    status_code = 503
