"""Domain errors surfaced to callers of the documentation service."""
from enum import Enum
from typing import Any, Dict, Tuple


class ErrorCode(str, Enum):
    """Stable error codes, translated into caller-facing responses."""

    DATE_FORMAT = "error.date.format"
    DATE_PARSE = "error.date.parse"
    DATE_ORDER = "error.date.order"
    ROUTE_NOT_FOUND = "error.route.not.found"
    CONTROLLER_NOT_FOUND = "error.controller.not.found"
    SERVICE_NOT_RUN = "error.service.not.run"
    SWAGGER_JSON_EMPTY = "error.service.swaggerJson.empty"
    PARSE_JSON = "error.parseJson"


_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.DATE_FORMAT: "Date must be formatted as YYYY-MM-DD.",
    ErrorCode.DATE_PARSE: "Date is not a valid calendar date.",
    ErrorCode.DATE_ORDER: "Begin date is after end date.",
    ErrorCode.ROUTE_NOT_FOUND: "Route not found.",
    ErrorCode.CONTROLLER_NOT_FOUND: "Controller not found.",
    ErrorCode.SERVICE_NOT_RUN: "Service document could not be fetched.",
    ErrorCode.SWAGGER_JSON_EMPTY: "Service document is empty.",
    ErrorCode.PARSE_JSON: "Service document is not valid JSON.",
}


class DocumentationError(Exception):
    """
    A typed failure carrying a stable code and the offending identifiers

    Usage:
    ```python
    raise DocumentationError(ErrorCode.ROUTE_NOT_FOUND, route_name)
    ```
    """

    def __init__(self, code: ErrorCode, *params: Any):
        self.code = code
        self.params: Tuple[Any, ...] = params
        detail = ", ".join(str(p) for p in params)
        super().__init__(f"{code.value}: {detail}" if detail else code.value)

    @property
    def message(self) -> str:
        return _MESSAGES.get(self.code, self.code.value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "code": self.code.value,
            "params": [str(p) for p in self.params],
            "message": self.message,
        }
