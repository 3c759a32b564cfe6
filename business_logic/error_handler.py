"""
Error classification and retry for the training data pipeline.

Failures from the OpenAI API, transcription and dataset files, and the
network are mapped to ErrorInfo records. Each record carries a user-facing
message and whether repeating the call can help.
"""

import logging
import time
from collections import Counter, deque
from typing import Dict, Any, Optional, Callable, Tuple
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import openai

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    API_ERROR = "api_error"
    DATA_ERROR = "data_error"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    SYSTEM_ERROR = "system_error"


LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

# HTTP status -> (severity, retryable, user message)
API_STATUS_ERRORS = {
    400: (ErrorSeverity.ERROR, False, "The generation request was rejected by the API."),
    401: (ErrorSeverity.CRITICAL, False, "API authentication failed. Check the OPENAI_API_KEY setting."),
    403: (ErrorSeverity.CRITICAL, False, "The API key is not allowed to use this model or endpoint."),
    404: (ErrorSeverity.ERROR, False, "The requested model, file or fine-tuning job does not exist."),
    429: (ErrorSeverity.WARNING, True, "API rate limit exceeded. Generation will be retried shortly."),
}
API_SERVER_ERROR = (ErrorSeverity.ERROR, True, "The OpenAI service had an internal error. Try again shortly.")

MALFORMED_DATA_KEYWORDS = ("json", "invalid", "malformed", "must be a list", "structure")
API_KEYWORDS = ("openai", "api key", "gpt")
DATA_KEYWORDS = ("file", "dataset", "folder")
NETWORK_KEYWORDS = ("network", "connection", "timeout", "timed out")

RATE_LIMIT_STEP_SECONDS = 60.0
RATE_LIMIT_MAX_STEPS = 5


@dataclass
class ErrorInfo:
    """A classified failure."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    technical_details: Optional[str] = None
    suggested_action: Optional[str] = None
    retry_possible: bool = False
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RetryConfig:
    """How often and how patiently to repeat a failing call."""
    max_attempts: int = 3
    base_delay: float = 1.0
    exponential_backoff: bool = True
    max_delay: float = 60.0

    def delay_for_attempt(self, attempt: int) -> float:
        """Delay before the retry following a zero-based ``attempt``."""
        if not self.exponential_backoff:
            return self.base_delay
        return min(self.base_delay * (2 ** attempt), self.max_delay)


def _status_code(error: Exception) -> Optional[int]:
    status_code = getattr(error, 'status_code', None)
    if status_code is None:
        status_code = getattr(getattr(error, 'response', None), 'status_code', None)
    return status_code if isinstance(status_code, int) else None


class ErrorHandler:
    """
    Classifies exceptions, retries transient ones and keeps a bounded log.

    The rate-limit tracker counts 429 responses so callers can back off for
    longer after repeated throttling.
    """

    def __init__(self, history_limit: int = 100):
        self.history_limit = history_limit
        self.error_history = deque(maxlen=history_limit)
        self.rate_limit_tracker: Dict[str, Any] = {}

    def handle_openai_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Classify a failure from the OpenAI API.

        Status codes decide the outcome when present. Otherwise timeouts are
        network errors and anything else raised by the SDK is retryable.
        """
        status_code = _status_code(error)

        if status_code == 429:
            self._track_rate_limit()

        if status_code in API_STATUS_ERRORS or (status_code is not None and status_code >= 500):
            severity, retryable, user_message = API_STATUS_ERRORS.get(status_code, API_SERVER_ERROR)
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=severity,
                message=f"OpenAI API error {status_code} in {context}: {error}",
                user_message=user_message,
                technical_details=str(error),
                retry_possible=retryable
            )

        if isinstance(error, openai.APITimeoutError):
            return ErrorInfo(
                category=ErrorCategory.NETWORK_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"OpenAI request timed out in {context}: {error}",
                user_message="The generation request timed out.",
                suggested_action="Check the connection or raise REQUEST_TIMEOUT_SECONDS.",
                retry_possible=True
            )

        return ErrorInfo(
            category=ErrorCategory.API_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"OpenAI error in {context}: {error}",
            user_message="The OpenAI service could not complete the request.",
            technical_details=str(error),
            retry_possible=isinstance(error, openai.OpenAIError)
        )

    def handle_data_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """Classify a failure reading or decoding transcription and dataset files."""
        if isinstance(error, FileNotFoundError):
            user_message = "The transcription or dataset file could not be found."
            suggested_action = "Check the file path and the DATA_DIR setting."
        elif isinstance(error, PermissionError):
            user_message = "The data directory cannot be read or written."
            suggested_action = "Check permissions on the data directory."
        elif any(keyword in str(error).lower() for keyword in MALFORMED_DATA_KEYWORDS):
            user_message = "The data is not valid JSON or has an unexpected shape."
            suggested_action = "Re-export the transcription results and try again."
        else:
            user_message = "The transcription data could not be processed."
            suggested_action = None

        return ErrorInfo(
            category=ErrorCategory.DATA_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Data error in {context}: {error}",
            user_message=user_message,
            technical_details=str(error),
            suggested_action=suggested_action,
            retry_possible=False
        )

    def handle_network_error(self, error: Exception, context: str = "") -> ErrorInfo:
        timed_out = isinstance(error, TimeoutError) or "timed out" in str(error).lower()
        return ErrorInfo(
            category=ErrorCategory.NETWORK_ERROR,
            severity=ErrorSeverity.WARNING if timed_out else ErrorSeverity.ERROR,
            message=f"Network {'timeout' if timed_out else 'error'} in {context}: {error}",
            user_message="The request timed out." if timed_out else "Could not reach the external service.",
            suggested_action="Check your connection and try again.",
            retry_possible=True
        )

    def handle_validation_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """Validation messages are already written for the user."""
        return ErrorInfo(
            category=ErrorCategory.VALIDATION_ERROR,
            severity=ErrorSeverity.WARNING,
            message=f"Validation error in {context}: {error}",
            user_message=str(error),
            retry_possible=False
        )

    def classify_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Map an exception to an ErrorInfo.

        Exception types are checked first, then keywords in the message.

        Args:
            error: The exception to classify
            context: Operation in progress, used in log messages

        Returns:
            ErrorInfo for the error
        """
        if isinstance(error, openai.OpenAIError):
            return self.handle_openai_error(error, context)
        if isinstance(error, (FileNotFoundError, PermissionError)):
            return self.handle_data_error(error, context)
        if isinstance(error, (ConnectionError, TimeoutError)):
            return self.handle_network_error(error, context)

        error_str = str(error).lower()

        if isinstance(error, (ValueError, TypeError, KeyError)):
            if "validation" in error_str:
                return self.handle_validation_error(error, context)
            if any(keyword in error_str for keyword in MALFORMED_DATA_KEYWORDS):
                return self.handle_data_error(error, context)

        if any(keyword in error_str for keyword in API_KEYWORDS):
            return self.handle_openai_error(error, context)
        if any(keyword in error_str for keyword in DATA_KEYWORDS):
            return self.handle_data_error(error, context)
        if any(keyword in error_str for keyword in NETWORK_KEYWORDS):
            return self.handle_network_error(error, context)

        return ErrorInfo(
            category=ErrorCategory.SYSTEM_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Unexpected error in {context}: {error}",
            user_message="An unexpected error occurred.",
            technical_details=f"{type(error).__name__}: {error}",
            retry_possible=False
        )

    def retry_with_backoff(self, func: Callable, config: RetryConfig = None,
                           context: str = "") -> Tuple[bool, Any, Optional[ErrorInfo]]:
        """
        Call ``func`` until it succeeds, a non-retryable error occurs, or
        attempts run out.

        Returns:
            Tuple of (success, result, error_info); the final failure is logged
        """
        config = config or RetryConfig()
        error_info = None

        for attempt in range(1, config.max_attempts + 1):
            try:
                return True, func(), None
            except Exception as e:
                error_info = self.classify_error(e, context)
                logger.warning(f"Attempt {attempt}/{config.max_attempts} failed in {context}: {e}")

                if attempt == config.max_attempts or not error_info.retry_possible:
                    break

                delay = config.delay_for_attempt(attempt - 1)
                logger.info(f"Retrying {context} in {delay} seconds")
                time.sleep(delay)

        self.log_error(error_info, context)
        return False, None, error_info

    def _track_rate_limit(self):
        self.rate_limit_tracker['count'] = self.rate_limit_tracker.get('count', 0) + 1
        self.rate_limit_tracker['last_rate_limit'] = datetime.now()

    def get_rate_limit_delay(self) -> float:
        """Seconds to wait before the next API call, growing with each 429 seen."""
        count = self.rate_limit_tracker.get('count', 0)
        if count == 0:
            return 1.0
        return RATE_LIMIT_STEP_SECONDS * min(count, RATE_LIMIT_MAX_STEPS)

    def log_error(self, error_info: ErrorInfo, context: str = ""):
        """Add an error to the history and log it at its severity."""
        self.error_history.append(error_info)
        prefix = f"{context}: " if context else ""
        logger.log(LOG_LEVELS[error_info.severity], f"{prefix}{error_info.message}")

    def get_error_statistics(self) -> Dict[str, Any]:
        """Counts by category and severity over the last 24 hours."""
        if not self.error_history:
            return {'total_errors': 0}

        cutoff = datetime.now() - timedelta(hours=24)
        recent = [info for info in self.error_history if info.timestamp > cutoff]

        return {
            'total_errors': len(self.error_history),
            'recent_errors_24h': len(recent),
            'category_breakdown': dict(Counter(info.category.value for info in recent)),
            'severity_breakdown': dict(Counter(info.severity.value for info in recent)),
            'rate_limit_info': dict(self.rate_limit_tracker)
        }


# Global error handler instance
error_handler = ErrorHandler()
