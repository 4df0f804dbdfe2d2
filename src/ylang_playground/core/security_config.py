"""Redaction and error-exposure rules for logs and API error bodies.

User programs are treated as private: source text and compiled output are
redacted from structured logs alongside the usual credential fields.
"""

CREDENTIAL_KEYS = frozenset(
    {"password", "secret", "token", "authorization", "api_key", "cookie"}
)
PROGRAM_KEYS = frozenset({"code", "source", "text"})

# Substring match, so "source_text" and "x-api-key" are covered too
SENSITIVE_KEYS = CREDENTIAL_KEYS | PROGRAM_KEYS

ERROR_FIELDS_BY_ENVIRONMENT: dict[str, frozenset[str]] = {
    "production": frozenset({"correlation_id", "type"}),
}
VERBOSE_ERROR_FIELDS = frozenset(
    {
        "correlation_id",
        "type",
        "details",
        "traceback",
        "exception_type",
        "validation_errors",
    }
)


def get_allowed_error_fields(environment: str) -> frozenset[str]:
    """Fields an error body may carry; anything but production is verbose."""
    return ERROR_FIELDS_BY_ENVIRONMENT.get(environment, VERBOSE_ERROR_FIELDS)


def is_sensitive_key(key: str) -> bool:
    key_lower = key.lower().replace("-", "_")
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
