"""Error types for autorepo."""

from typing import Optional, Dict, Any, List, Sequence


class AutoRepoError(Exception):
    """Base exception for autorepo errors."""

    def __init__(self, message: str, code: str = "AUTOREPO_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a plain dictionary."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


def _options(names: Sequence[str]) -> str:
    return ", ".join(names) if names else "(none)"


class NotInitializedError(AutoRepoError):
    """Engine used before initialize() completed."""

    def __init__(self, message: str = "Engine not initialized. Call initialize() first."):
        super().__init__(message, code="NOT_INITIALIZED")


class TableNotFoundError(AutoRepoError):
    """Requested table is not part of the discovered schema."""

    def __init__(self, table: str, available: Optional[List[str]] = None):
        self.table = table
        self.available = list(available or [])
        super().__init__(
            f"Table '{table}' not found. Available tables: {_options(self.available)}",
            code="TABLE_NOT_FOUND",
            details={"table": table, "available": self.available},
        )


class ColumnNotFoundError(AutoRepoError):
    """Requested column does not exist on a table."""

    def __init__(self, column: str, table: str, available: Optional[List[str]] = None):
        self.column = column
        self.table = table
        self.available = list(available or [])
        super().__init__(
            f"Column '{column}' not found on table '{table}'. "
            f"Available columns: {_options(self.available)}",
            code="COLUMN_NOT_FOUND",
            details={"column": column, "table": table, "available": self.available},
        )


class RelationshipNotFoundError(AutoRepoError):
    """Requested relationship is not defined for a table."""

    def __init__(self, name: str, table: str, available: Optional[List[str]] = None):
        self.name = name
        self.table = table
        self.available = list(available or [])
        super().__init__(
            f"Relationship '{name}' not found on table '{table}'. "
            f"Available relationships: {_options(self.available)}",
            code="RELATIONSHIP_NOT_FOUND",
            details={"relationship": name, "table": table, "available": self.available},
        )


class ConnectionError(AutoRepoError):
    """Error talking to the database.

    The driver exception is kept on ``original_error`` and is also chained
    as ``__cause__`` by the raising code.
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.original_error = original_error
        details = dict(details or {})
        if original_error is not None:
            details.setdefault("original_error", str(original_error))
        super().__init__(message, code="CONNECTION_ERROR", details=details)


class DatabaseError(AutoRepoError):
    """A statement was rejected by the database."""

    def __init__(self, message: str, sql: Optional[str] = None, original_error: Optional[BaseException] = None):
        self.sql = sql
        self.original_error = original_error
        details: Dict[str, Any] = {}
        if sql:
            details["sql"] = sql
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, code="DATABASE_ERROR", details=details)


class ValidationError(AutoRepoError):
    """Input data failed validation against table metadata."""

    def __init__(self, message: str, issues: Optional[List[str]] = None, table: Optional[str] = None):
        self.issues = list(issues or [])
        self.table = table
        details: Dict[str, Any] = {"issues": self.issues}
        if table:
            details["table"] = table
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class EntityNotFoundError(AutoRepoError):
    """No row matches the given key."""

    def __init__(self, table: str, key: Dict[str, Any]):
        self.table = table
        self.key = dict(key)
        super().__init__(
            f"No row in '{table}' matches key {self.key}",
            code="ENTITY_NOT_FOUND",
            details={"table": table, "key": self.key},
        )


class UnsupportedDialectError(AutoRepoError):
    """No introspector is registered for a dialect."""

    def __init__(self, dialect: str, supported: Optional[List[str]] = None):
        self.dialect = dialect
        self.supported = list(supported or [])
        super().__init__(
            f"Unsupported dialect '{dialect}'. Supported dialects: {_options(self.supported)}",
            code="UNSUPPORTED_DIALECT",
            details={"dialect": dialect, "supported": self.supported},
        )
