"""
Standardized exception hierarchy for the posture progress tracker
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class ProgressTrackerError(Exception):
    """
    Base exception for all progress tracker errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise ProgressTrackerError(
            message="Failed to push leaderboard row",
            device_id="4F1C...",
            operation="leaderboard_push",
            context={"month_year": "2025-10"}
        )
    """

    def __init__(
        self,
        message: str,
        device_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.device_id = device_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "device_id": self.device_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for display or transport"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(ProgressTrackerError):
    """
    Raised when caller input fails validation

    Examples:
    - Negative exercise duration
    - Unknown exercise id
    - Goal target below 1
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        context = {"field": field, "value": value, **(kwargs.pop("context", None) or {})}
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context=context,
            **kwargs
        )


# ==========================================
# Local Storage Errors
# ==========================================

class StorageError(ProgressTrackerError):
    """Reading or writing a local JSON document failed"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs
    ):
        self.path = path
        context = {"path": path, **(kwargs.pop("context", None) or {})}
        super().__init__(
            message=message,
            user_message="We couldn't save your progress on this device.",
            context=context,
            **kwargs
        )


# ==========================================
# Remote Store Errors
# ==========================================

class RemoteStoreError(ProgressTrackerError):
    """
    The remote leaderboard store failed (network, HTTP status, open circuit)
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble connecting to {service or 'the leaderboard'}. Please try again later."
        )
        context = {
            "service": service,
            "status_code": status_code,
            **(kwargs.pop("context", None) or {})
        }
        super().__init__(
            message=message,
            context=context,
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(ProgressTrackerError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        context = {"config_key": config_key, **(kwargs.pop("context", None) or {})}
        super().__init__(
            message=message,
            user_message="The app is not properly configured.",
            context=context,
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    device_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    service: str = "leaderboard"
) -> ProgressTrackerError:
    """
    Wrap external exceptions (httpx, pybreaker, OSError) into our hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        device_id: Device ID if applicable
        context: Additional context
        service: Remote service name for HTTP errors

    Returns:
        Appropriate ProgressTrackerError subclass

    Example:
        try:
            response = await client.post(url, json=row)
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation="leaderboard_upsert")
    """
    import httpx
    import pybreaker

    if isinstance(error, pybreaker.CircuitBreakerError):
        return RemoteStoreError(
            message=f"{service} circuit is open: {str(error)}",
            service=service,
            device_id=device_id,
            operation=operation,
            context=context,
            cause=error
        )

    # HTTP errors
    if isinstance(error, httpx.TimeoutException):
        return RemoteStoreError(
            message=f"{service} request timed out: {str(error)}",
            service=service,
            device_id=device_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return RemoteStoreError(
            message=f"{service} returned error: {error.response.status_code}",
            service=service,
            status_code=error.response.status_code,
            device_id=device_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, httpx.HTTPError):
        return RemoteStoreError(
            message=f"{service} request failed: {str(error)}",
            service=service,
            device_id=device_id,
            operation=operation,
            context=context,
            cause=error
        )

    # Local file errors
    elif isinstance(error, OSError):
        return StorageError(
            message=f"{operation} failed: {str(error)}",
            path=getattr(error, "filename", None),
            device_id=device_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    else:
        return ProgressTrackerError(
            message=f"{operation} failed: {str(error)}",
            device_id=device_id,
            operation=operation,
            context=context,
            cause=error
        )
