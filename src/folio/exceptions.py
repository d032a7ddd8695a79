"""
Custom Folio exception classes
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class FolioException(Exception):
    """Base class for all Exceptions raised within Folio"""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args)

        self.extra_info = kwargs.get("extra_info", None)

    def __reduce__(self) -> tuple[Any, tuple[Any]]:
        return (self.__class__, (self.args[0],))


class FolioExceptionWithMessage(FolioException):
    def __init__(
        self, messages: dict[str, str], traceback: Optional[str] = None, **kwargs: Any
    ) -> None:
        logger.debug(f"Exception:: {messages}")

        self.messages = messages
        self.traceback = traceback

        super().__init__(**kwargs)

    def __str__(self) -> str:
        return f"{dict(self.messages)}"

    def __reduce__(self) -> tuple[Any, tuple[Any]]:
        return (self.__class__, (self.messages,))


class ConfigurationError(FolioException):
    """Improper Configuration encountered like:
    * An important configuration variable is missing
    * An unknown executor provider
    * Invalid paging defaults
    """


class QueryExecutionError(FolioException):
    """The backing query service failed to execute a query.

    Raised by executors and propagated as-is through result sets. Not retried.
    """


class IterationExhaustedError(FolioException, StopIteration):
    """A cursor was advanced past its last page, or retreated before its first"""


class InvalidOperationError(FolioException):
    """Operation being performed is not permitted"""


class NotSupportedError(FolioException):
    """Object does not support the operation being performed"""


class ValidationError(FolioExceptionWithMessage):
    """Raised when arguments supplied to a result set or query are invalid.

    :param messages: dictionary of error messages where key is the argument
        name and value is a list of errors
    """
