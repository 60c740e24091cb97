"""Exceptions for the Linkly service layer.

This module contains the exception hierarchy for the service layer,
providing domain-specific exceptions that abstract underlying implementation details.
"""


class ServiceError(Exception):
    """Base exception for all service-level errors."""
    pass


class LinkError(ServiceError):
    """Base exception for short link errors."""
    pass


class LinkValidationError(LinkError):
    """Submitted link data failed validation.

    Carries the form field the message belongs to (``url`` or ``custom``).
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class CollisionError(LinkError):
    """The requested custom code is already taken."""

    def __init__(self, short_code: str, message: str = "Custom URL is already taken"):
        self.short_code = short_code
        self.field = "custom"
        self.message = message
        super().__init__(f"Short code '{short_code}' is already taken")


class GenerationExhausted(LinkError):
    """No free short code was found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No unique short code found after {attempts} attempts")


class NotFoundError(LinkError):
    """Link is absent, inactive or reserved."""
    pass


class LinkCreationError(LinkError):
    """Storage failed while creating a link."""
    pass


class LinkUpdateError(LinkError):
    """Error occurred while updating a link."""
    pass


class AnalyticsPersistError(ServiceError):
    """A click event could not be stored. Logged, never propagated."""
    pass


class StatsRetrievalError(ServiceError):
    """Error occurred while retrieving statistics."""
    pass


class MaintenanceError(ServiceError):
    """Error occurred during a maintenance job."""
    pass
