class SqlgateError(Exception):
    """Base exception for sqlgate errors."""

    pass


class EngineError(SqlgateError):
    """Raised when SQLite rejects a statement. Carries the original SQL."""

    def __init__(self, sql: str, cause: Exception):
        self.sql = sql
        self.cause = cause
        super().__init__(f"{sql}: {cause}")


class AuthorizationError(EngineError):
    """Raised when the read-only authorizer denies a statement."""

    pass


class ShapeError(SqlgateError):
    """Raised when a target cannot receive query results."""

    pass


class ConversionError(SqlgateError):
    """Raised when a column value cannot be coerced into the target type."""

    def __init__(self, column: str | None, value, reason: str):
        self.column = column
        self.value = value
        where = f"column {column!r}" if column is not None else "value"
        super().__init__(f"cannot convert {where} ({value!r}): {reason}")


class InsertTypeError(SqlgateError, TypeError):
    """Raised when insert() receives something that is neither record nor mapping."""

    pass


class AlreadyOpenError(SqlgateError):
    """Raised on a second open() of the same database."""

    pass


class CapabilityError(SqlgateError):
    """Raised when a handle lacks the capability an operation needs."""

    pass


class MigrationError(SqlgateError):
    """Raised when a database migration fails."""

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(f"migration {name!r} failed: {cause}")
