"""
Custom exceptions for http_message.

This module defines the exception hierarchy used throughout
the library for error handling and debugging.
"""

from typing import Optional


class HTTPMessageError(Exception):
    """Base exception for all http_message errors."""
    
    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(HTTPMessageError, ValueError):
    """Raised when a value does not conform to its grammar or contract."""
    
    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Validation error: {message}", cause)


class ResourceStateError(HTTPMessageError, RuntimeError):
    """Raised when operating on a detached stream or a moved upload."""
    
    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Resource state error: {message}", cause)


class IOOperationError(HTTPMessageError, RuntimeError):
    """Raised when an underlying file system or stream call fails."""
    
    def __init__(
        self,
        operation: str,
        message: str,
        cause: Optional[Exception] = None,
    ) -> None:
        self.operation = operation
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(f"I/O error during {operation}: {message}", cause)
