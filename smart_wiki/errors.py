"""Exceptions raised by the service layer and mapped to HTTP statuses by the routes."""


class WikiError(Exception):
    """Base class for expected, user-facing failures."""
    status_code = 500


class ValidationError(WikiError):
    """Missing or invalid input (400)."""
    status_code = 400


class NotFoundError(WikiError):
    """A referenced id or name does not exist (404)."""
    status_code = 404
