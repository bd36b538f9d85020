"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"
    LOCATION_FOUND = "LOCATION_FOUND"
    LOW_CONFIDENCE_LOCATION = "LOW_CONFIDENCE_LOCATION"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"

    # Service Errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_NOT_CONFIGURED = "SERVICE_NOT_CONFIGURED"

    # Geolocation errors
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    IMAGE_PROCESSING_ERROR = "IMAGE_PROCESSING_ERROR"
    SUBMISSION_SUPERSEDED = "SUBMISSION_SUPERSEDED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.LOCATION_FOUND: "Location identified",
    MessageCode.LOW_CONFIDENCE_LOCATION: "Very Low confidence",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    MessageCode.FILE_TOO_LARGE: "File size too large",
    MessageCode.INVALID_FILE_TYPE: "Invalid file type",
    # Service Errors
    MessageCode.EXTERNAL_SERVICE_ERROR: "External service error",
    MessageCode.SERVICE_NOT_CONFIGURED: "Service not configured",
    # Geolocation errors
    MessageCode.LOCATION_NOT_FOUND: "All Scans Failed, Location Not Found",
    MessageCode.IMAGE_PROCESSING_ERROR: "Error processing image",
    MessageCode.SUBMISSION_SUPERSEDED: "Superseded by a newer submission",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.INTERNAL_SERVER_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
