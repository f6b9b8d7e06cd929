"""
Adapter-specific exception classes.

Every failure raised by this package derives from `DatabaseError`. Driver
exceptions are never raised bare: they are wrapped and chained so the original
cause stays reachable through `.cause` and `__cause__`.
"""


class DatabaseError(Exception):
    """Base class for all adapter errors.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f'{self.message}\n{self.cause}'


class ConnectionFailure(DatabaseError):
    """Database unavailable: open failed or the connection is not open.
    """


class QueryError(DatabaseError):
    """Error executing a statement. Carries the offending SQL text.
    """

    def __init__(self, message: str, sql: str | None = None,
                 cause: BaseException | None = None) -> None:
        super().__init__(message, cause)
        self.sql = sql

    def __str__(self) -> str:
        parts = [self.message]
        if self.sql:
            parts.append(self.sql)
        if self.cause is not None:
            parts.append(str(self.cause))
        return '\n'.join(parts)


class DataIntegrityError(DatabaseError):
    """Programming fault: a value was requested that was never recorded.
    """


class TypeConversionError(DatabaseError):
    """Error converting a stored value to its canonical type.
    """


class BatchInsertError(DatabaseError):
    """A row of a batch insert failed; the batch was rolled back.
    """


class SchemaEvolutionError(DatabaseError):
    """A structural table change failed; the change was rolled back.
    """


class ReadOnlyError(DatabaseError):
    """A write was attempted on a database opened read-only.
    """

