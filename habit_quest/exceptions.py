"""
Standardized exception hierarchy for habit-quest
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class HabitQuestError(Exception):
    """
    Base exception for all habit-quest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise HabitQuestError(
            message="Failed to save ledger",
            user_id="123456",
            operation="save_ledger",
            context={"key": "ledger:categories"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
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
            "user_id": self.user_id,
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
        """Serialize exception for API responses"""
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

class ValidationError(HabitQuestError):
    """
    Raised when user input fails validation

    Examples:
    - Negative streak value
    - Blank task title
    - Quiz pool too small for the configured rounds
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
        kwargs.setdefault("user_message", f"Invalid {field}: {message}" if field else message)
        kwargs.setdefault("context", {"field": field, "value": value})
        super().__init__(message=message, **kwargs)


class InvalidDeltaError(ValidationError):
    """XP delta was zero or negative"""

    def __init__(self, message: str = "XP delta must be a positive integer", value: Optional[Any] = None, **kwargs):
        super().__init__(message=message, field="delta", value=value, **kwargs)


class InvalidWeightError(ValidationError):
    """Reward wheel built with no segments or a non-positive weight"""

    def __init__(self, message: str, value: Optional[Any] = None, **kwargs):
        super().__init__(message=message, field="weight", value=value, **kwargs)


# ==========================================
# Lookup Errors
# ==========================================

class NotFoundError(HabitQuestError):
    """Requested task, date or record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


# ==========================================
# Quiz Errors
# ==========================================

class QuizStateError(HabitQuestError):
    """Quiz action not allowed in the current state"""

    def __init__(self, message: str, state: Optional[str] = None, **kwargs):
        self.state = state
        super().__init__(
            message=message,
            user_message="That action isn't available right now.",
            context={"state": state},
            **kwargs
        )


# ==========================================
# Storage / External Errors
# ==========================================

class StorageError(HabitQuestError):
    """Persistent store rejected or failed an operation"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        self.key = key
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your progress. Please try again.",
            context={"key": key},
            **kwargs
        )


class ExternalAPIError(HabitQuestError):
    """
    Base class for external API failures
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
        super().__init__(
            message=message,
            user_message=f"We're having trouble connecting to {service or 'an external service'}. Please try again later.",
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class ConfigurationError(HabitQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Internal Signals
# ==========================================

class StaleWriteIgnored(Exception):
    """
    An async response was issued before a newer state change and was dropped.

    Not a user-facing error: it is raised and caught inside the component
    that owns the state, and only logged at debug level.
    """

    def __init__(self, source: str, issued: int, current: int):
        super().__init__(f"Stale {source} response ignored (issued at rev {issued}, now rev {current})")
        self.source = source
        self.issued = issued
        self.current = current


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> HabitQuestError:
    """
    Wrap external exceptions (httpx, etc.) into our exception hierarchy

    Example:
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation="store_get", user_id="123")
    """
    import httpx

    if isinstance(error, httpx.TimeoutException):
        return ExternalAPIError(
            message=f"API request timed out: {str(error)}",
            service="storage",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return ExternalAPIError(
            message=f"API returned error: {error.response.status_code}",
            service="storage",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPError):
        return StorageError(
            message=f"{operation} failed: {str(error)}",
            key=(context or {}).get("key"),
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    else:
        return HabitQuestError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
