"""
Advisor Errors — Structured Failure Kinds
===========================================
Every failure leaves the engine as one AdvisorError subclass with a
human-readable message:

  ValidationError        — malformed or missing input (carries the field path)
  UpstreamHTTPError      — non-2xx from the analytics platform
  UpstreamAPIError       — platform answered with an error payload
  RetryExhaustedError    — transient failure outlived the retry budget
  NotFoundInSearchError  — named entity absent from every searched context
"""

import re
from typing import Any, Dict, Iterable, List, Optional

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
EXAMPLE_UUID = "123e4567-e89b-12d3-a456-426614174000"

CLIENT_ERROR_STATUSES = frozenset({400, 401, 403, 404})

HTTP_GUIDANCE: Dict[int, str] = {
    400: "Bad Request: {message}. Please check your request parameters.",
    401: "Unauthorized: {message}. Please check your API key and permissions.",
    403: "Forbidden: {message}. You don't have permission to access this resource.",
    404: "Not Found: {message}. The requested resource doesn't exist or you don't have access to it.",
    500: "Internal Server Error: {message}. This is likely a temporary issue. Please try again later.",
}


class AdvisorError(Exception):
    """Base class for all advisor failures."""
    kind = "advisor_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class ValidationError(AdvisorError):
    kind = "validation_error"

    def __init__(self, field_path: str, message: str):
        super().__init__(f"Validation error: {field_path}: {message}" if field_path else f"Validation error: {message}")
        self.field_path = field_path
        self.detail = message

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["field"] = self.field_path
        return result

    @classmethod
    def from_pydantic(cls, errors: Iterable[Dict[str, Any]]) -> "ValidationError":
        """Collapse pydantic's error list into one error naming every offending path."""
        parts: List[str] = []
        first_path = ""
        for err in errors:
            path = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            first_path = first_path or path
            message = err.get("msg", "invalid value")
            if err.get("type") == "uuid_parsing":
                message = f'Invalid UUID format. Please provide a valid UUID (e.g., "{EXAMPLE_UUID}")'
            parts.append(f"{path}: {message}")
        # Paths are already embedded in each part
        exc = cls("", ", ".join(parts))
        exc.field_path = first_path
        return exc


class UpstreamHTTPError(AdvisorError):
    kind = "upstream_http_error"

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}".rstrip(": "))

    @property
    def is_client_error(self) -> bool:
        return self.status_code in CLIENT_ERROR_STATUSES

    @property
    def guidance(self) -> str:
        template = HTTP_GUIDANCE.get(self.status_code)
        return template.format(message=self.message) if template else self.message

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["status"] = self.status_code
        result["message"] = self.guidance
        return result


class UpstreamAPIError(AdvisorError):
    """The platform returned `{"status": "error", "error": {...}}`."""
    kind = "upstream_api_error"

    def __init__(self, name: str, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        self.name = name
        self.detail = message
        self.data = data or {}
        super().__init__(self._compose())

    def _compose(self) -> str:
        text = f"Analytics API error: {self.name}"
        if self.detail:
            text += f", {self.detail}"
        details = []
        for key, value in self.data.items():
            if isinstance(value, dict) and "message" in value:
                details.append(f"{key}: {value['message']}")
            elif isinstance(value, str):
                details.append(f"{key}: {value}")
        if details:
            text += f". Validation errors: {', '.join(details)}"
            if any("filters" in d and "required" in d for d in details):
                text += ". Suggestion: Ensure filters object is provided, even if empty ({})."
            if any("dimensions" in d or "metrics" in d for d in details):
                text += ". Suggestion: Check that field IDs exist in the explore schema."
            if any("explore" in d for d in details):
                text += ". Suggestion: Verify the explore/table name exists in the project."
        return text


class RetryExhaustedError(AdvisorError):
    kind = "retry_exhausted"

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Operation failed after {attempts} attempts: {last_error}")

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["attempts"] = self.attempts
        return result


class NotFoundInSearchError(AdvisorError):
    kind = "not_found"

    def __init__(self, entity: str, searched: str):
        self.entity = entity
        self.searched = searched
        super().__init__(f"{entity} not found in any accessible {searched}")


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_RE.match(value))


def validate_uuid(value: Any, field_path: str) -> str:
    if not is_valid_uuid(value):
        raise ValidationError(
            field_path,
            f'Invalid UUID format: {value}. Please provide a valid UUID (e.g., "{EXAMPLE_UUID}")',
        )
    return value
