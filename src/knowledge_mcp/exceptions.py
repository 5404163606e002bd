"""Custom exceptions for the Knowledge article access layer."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Discriminator carried by every KnowledgeError."""

    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    UPSTREAM_REQUEST = "upstream_request"
    UPSTREAM_PROTOCOL = "upstream_protocol"
    NOT_FOUND = "not_found"


class KnowledgeError(Exception):
    """Base exception for errors raised by the access layer.

    Front ends switch on ``kind`` and use ``http_status`` when they need a
    status code; the access layer itself never maps or logs errors.
    """

    kind: Optional[ErrorKind] = None

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        upstream_status: Optional[int] = None,
        operation: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.upstream_status = upstream_status
        self.operation = operation

    @property
    def http_status(self) -> int:
        """Status code a front end should report for this error."""
        return self.status_code


class ConfigurationError(KnowledgeError):
    """Raised when required setup is missing or invalid."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message=message, status_code=500)
        self.setting = setting


class ValidationError(KnowledgeError):
    """Raised when caller input is rejected before reaching Salesforce."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message=message, status_code=400)
        self.parameter = parameter


class UpstreamRequestError(KnowledgeError):
    """Raised when a call to Salesforce fails in transport or with a non-2xx status."""

    kind = ErrorKind.UPSTREAM_REQUEST

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        operation: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=upstream_status or 500,
            upstream_status=upstream_status,
            operation=operation
        )


class UpstreamProtocolError(KnowledgeError):
    """Raised when Salesforce answers but the payload breaks the expected contract."""

    kind = ErrorKind.UPSTREAM_PROTOCOL

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message=message, status_code=502, operation=operation)


class NotFoundError(KnowledgeError):
    """Raised when a query succeeds but returns no matching article."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, object_type: Optional[str] = None, object_id: Optional[str] = None):
        super().__init__(message=message, status_code=404)
        self.object_type = object_type
        self.object_id = object_id
