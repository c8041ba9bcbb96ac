"""
Error taxonomy for Michishirube.

Every error carries enough context for a caller to map it to a response
(see ``to_dict``) without parsing message strings.
"""

from typing import Any, Dict, Optional


class MichishirubeError(Exception):
    """Base class for all errors raised by the storage layer."""

    code = "MICHISHIRUBE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class ValidationError(MichishirubeError):
    """Raised when a caller-supplied entity fails a required-field or enum check."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data


class NotFoundError(MichishirubeError):
    """Raised when a lookup by id matches zero rows."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        self.code = f"{entity.upper()}_NOT_FOUND"
        super().__init__(f"{entity} not found: {entity_id}")


class DecodeError(MichishirubeError):
    """Raised when a stored list column cannot be parsed back into a list."""

    code = "DECODE_ERROR"

    def __init__(self, value: Any, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"cannot decode list value {value!r}: {reason}")


class MigrationError(MichishirubeError):
    """Raised when a schema migration cannot be applied."""

    code = "MIGRATION_ERROR"

    def __init__(self, version: int, name: str, message: str):
        self.version = version
        self.name = name
        super().__init__(f"migration {version} ({name}) failed: {message}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["version"] = self.version
        return data


class StorageError(MichishirubeError):
    """Wraps a database driver error with the entity and operation it came from."""

    code = "STORAGE_ERROR"

    def __init__(
        self, entity: str, operation: str, original: Optional[BaseException] = None
    ):
        self.entity = entity
        self.operation = operation
        self.original = original
        detail = f": {original}" if original is not None else ""
        super().__init__(f"{operation} {entity} failed{detail}")
