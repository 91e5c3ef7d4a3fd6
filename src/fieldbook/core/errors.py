"""
Fieldbook Errors

🚨 Error Taxonomy:
Every failure a repository can surface maps to exactly one of these classes.
Local validation failures (identifiers, criteria) are raised before any
backend call; backend failures are wrapped so callers never see driver
specific exceptions.
"""

from typing import Any, Dict, List, Optional


class FieldbookError(Exception):
    """Base exception for all fieldbook errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidIdentifier(FieldbookError):
    """Raised when an identifier value is empty or malformed"""

    def __init__(self, identifier_type: str, value: Any, reason: Optional[str] = None):
        message = f"Invalid {identifier_type}: {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(
            message=message,
            details={"identifier_type": identifier_type, "value": str(value), "reason": reason},
        )


class InvalidCriteria(FieldbookError):
    """Raised when a criteria field (filter, sort, pagination) is invalid"""

    def __init__(self, criteria_type: str, field: str, reason: str):
        message = f"Invalid {criteria_type}.{field}: {reason}"
        super().__init__(
            message=message,
            details={"criteria_type": criteria_type, "field": field, "reason": reason},
        )


class NotFound(FieldbookError):
    """Raised when no record matches an identifier"""

    def __init__(self, entity_type: str, identifier: str, operation: str):
        super().__init__(
            message=f"{entity_type} not found: {identifier}",
            details={"entity_type": entity_type, "identifier": identifier, "operation": operation},
        )


class Conflict(FieldbookError):
    """Raised when inserting a record whose identifier already exists"""

    def __init__(self, entity_type: str, identifier: str, operation: str = "add"):
        super().__init__(
            message=f"{entity_type} already exists: {identifier}",
            details={"entity_type": entity_type, "identifier": identifier, "operation": operation},
        )


class PersistenceError(FieldbookError):
    """Raised when the storage backend fails (connectivity, constraint, timeout)"""

    def __init__(
        self,
        entity_type: str,
        operation: str,
        reason: str,
        identifier: Optional[str] = None,
    ):
        message = f"{operation} failed for {entity_type}"
        if identifier:
            message += f" {identifier}"
        message += f": {reason}"
        super().__init__(
            message=message,
            details={
                "entity_type": entity_type,
                "operation": operation,
                "identifier": identifier,
                "reason": reason,
            },
        )


class RepositoryConfigurationError(FieldbookError):
    """Raised at startup when a repository's schema mapping is inconsistent"""

    def __init__(self, repository: str, problems: List[str]):
        super().__init__(
            message=f"{repository} misconfigured: {'; '.join(problems)}",
            details={"repository": repository, "problems": problems},
        )


class ValidationError(FieldbookError):
    """Raised when the validation layer rejects raw input"""

    def __init__(self, message: str, field: Optional[str] = None,
                 errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message=message, details={"field": field, "errors": errors or {}})
        self.field = field
        self.errors = errors or {}


__all__ = [
    "FieldbookError", "InvalidIdentifier", "InvalidCriteria", "NotFound",
    "Conflict", "PersistenceError", "RepositoryConfigurationError", "ValidationError",
]
