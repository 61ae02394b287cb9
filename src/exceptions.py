"""
Standardized exception hierarchy for habit-quest
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import psycopg

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
    - HTTP status code for the API layer

    Example:
        raise HabitQuestError(
            message="Failed to save completion log",
            user_id="123456",
            operation="log_completion",
            context={"habit_id": "abc-123"}
        )
    """

    status_code: int = 500
    log_level: int = logging.ERROR

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
            "error_context": self.context,  # Avoid conflict with logging's 'context'
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

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
    - Empty habit name
    - Unknown frequency
    - Malformed date filter

    Example:
        raise ValidationError(
            message="Use YYYY-MM-DD",
            field="start_date",
            value="03/01/2025",
            user_id="123456"
        )
    """

    status_code = 400
    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(HabitQuestError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={"query": query, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested database record does not exist"""

    status_code = 404
    log_level = logging.WARNING

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
            context={"record_type": record_type, "record_id": record_id, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


class HabitNotFoundError(RecordNotFoundError):
    """Habit does not exist or is not owned by the caller"""

    def __init__(self, habit_id: str, **kwargs):
        super().__init__(
            message=f"Habit {habit_id} not found or does not belong to user",
            record_type="Habit",
            record_id=habit_id,
            **kwargs
        )


class UserNotFoundError(RecordNotFoundError):
    """User does not exist"""

    def __init__(self, user_id: str, **kwargs):
        super().__init__(
            message=f"User {user_id} not found",
            record_type="User",
            record_id=user_id,
            user_id=user_id,
            **kwargs
        )


class RewardNotFoundError(RecordNotFoundError):
    """Reward id is not in the catalog"""

    def __init__(self, reward_id: str, **kwargs):
        super().__init__(
            message=f"Reward {reward_id} not found",
            record_type="Reward",
            record_id=reward_id,
            **kwargs
        )


# ==========================================
# Conflicts
# ==========================================

class ConflictError(HabitQuestError):
    """Request collides with existing state"""

    status_code = 409
    log_level = logging.WARNING


class HabitAlreadyLoggedError(ConflictError):
    """A completion already exists for the habit on that date"""

    def __init__(self, habit_id: str, log_date: Any, **kwargs):
        self.habit_id = habit_id
        self.log_date = log_date
        super().__init__(
            message=f"Habit {habit_id} already logged for {log_date}",
            user_message=f"Habit already logged for {log_date}.",
            context={"habit_id": habit_id, "log_date": str(log_date)},
            **kwargs
        )


class RewardAlreadyUnlockedError(ConflictError):
    """User already owns the reward"""

    def __init__(self, reward_id: str, **kwargs):
        super().__init__(
            message=f"Reward {reward_id} already unlocked",
            user_message="You have already unlocked this reward.",
            context={"reward_id": reward_id},
            **kwargs
        )


# ==========================================
# Balance Errors
# ==========================================

class InsufficientHPError(HabitQuestError):
    """Not enough HP to redeem a reward"""

    status_code = 400
    log_level = logging.WARNING

    def __init__(self, required: int, available: int, **kwargs):
        self.required = required
        self.available = available
        super().__init__(
            message=f"Reward costs {required} HP but only {available} HP available",
            user_message="Not enough HP to redeem this reward.",
            context={"required": required, "available": available},
            **kwargs
        )


class InternalError(HabitQuestError):
    """
    Invariant violation or unexpected failure inside a transaction

    The message is logged for operators; callers only ever see user_message.
    """

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message="Something went wrong on our side. Please try again later.",
            **kwargs
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["message"] = self.user_message
        return data


# ==========================================
# Authentication & Configuration
# ==========================================

class AuthenticationError(HabitQuestError):
    """Authentication failed"""

    status_code = 401
    log_level = logging.WARNING

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        super().__init__(
            message=message,
            user_message="Authentication failed. Please check your credentials.",
            **kwargs
        )


class ConfigurationError(HabitQuestError):
    """System configuration is invalid or missing"""

    status_code = 503

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
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> HabitQuestError:
    """
    Wrap external exceptions (psycopg, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate HabitQuestError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="create_habit",
                user_id="123456",
                context={"query": query}
            )
    """
    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # Generic fallback
    return InternalError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
