"""Application-specific exception classes."""

from typing import Optional


class HanyuError(Exception):
    """Base exception class for hanyu errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class NotFoundError(HanyuError):
    """Raised when a record that must pre-exist is absent."""

    def __init__(self, entity: str, record_id, **kwargs):
        super().__init__(f"{entity} {record_id} not found", error_code="NOT_FOUND", **kwargs)
        self.entity = entity
        self.record_id = record_id


class ValidationError(HanyuError):
    """Raised for malformed input (bad enum value, negative counters, ...)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="VALIDATION_ERROR", **kwargs)


class ConflictError(HanyuError):
    """Raised when a unique value is already taken."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="CONFLICT", **kwargs)


class DeliveryError(HanyuError):
    """Raised when an email cannot be delivered."""

    def __init__(self, message: str, recipient: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="DELIVERY_ERROR", **kwargs)
        self.recipient = recipient


class ExternalServiceError(HanyuError):
    """Raised when an external collaborator (TTS, ...) fails."""

    def __init__(self, message: str, service: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", **kwargs)
        self.service = service
