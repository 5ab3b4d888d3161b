"""Domain errors raised by the service layer.

Routes never catch these individually; the handlers registered in
``coworkhub.main`` turn them into failure envelopes.
"""

from __future__ import annotations


class CoworkHubError(Exception):
    """Base class for errors the API reports back to the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CoworkHubError):
    """Referenced entity is absent or belongs to another tenant."""


class ValidationError(CoworkHubError):
    """Operation is not allowed in the entity's current state."""
