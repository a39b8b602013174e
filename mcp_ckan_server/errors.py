from enum import Enum
from typing import Optional


class MCPErrorType(Enum):
    INVALID_PARAMS = "invalid_parameters"
    UNKNOWN_TOOL = "unknown_tool"
    CKAN_API_ERROR = "ckan_api_error"
    NETWORK_ERROR = "network_error"
    FEATURE_DISABLED = "feature_disabled"
    INVALID_RESULT = "invalid_result"


class CKANError(Exception):
    """Base class for failures reported by the CKAN client"""

    error_type = MCPErrorType.CKAN_API_ERROR

    def __init__(self, action: str, message: str):
        self.action = action
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"[CKAN {self.action}] {self.message}"


class CKANAPIError(CKANError):
    """Transport, HTTP or body-parsing failure for a single CKAN action call.

    ``status`` is ``None`` when no HTTP response was received (connection
    errors, timeouts).
    """

    def __init__(self, action: str, message: str, status: Optional[int] = None,
                 url: Optional[str] = None):
        self.status = status
        self.url = url
        if status is None:
            self.error_type = MCPErrorType.NETWORK_ERROR
        super().__init__(action, message)

    def __str__(self) -> str:
        if self.status is None:
            return f"[CKAN {self.action}] {self.message}"
        return f"[CKAN {self.action}] HTTP {self.status} - {self.message}\nURL: {self.url or ''}"


class FeatureDisabledError(CKANError):
    """Deliberate refusal raised before any request is sent"""

    error_type = MCPErrorType.FEATURE_DISABLED


class ToolArgumentError(ValueError):
    """Caller arguments do not match a tool's input schema"""

    error_type = MCPErrorType.INVALID_PARAMS

    def __init__(self, tool: str, details: str):
        self.tool = tool
        self.details = details
        super().__init__(f"Invalid arguments for {tool}: {details}")
