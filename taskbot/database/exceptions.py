"""Errors raised by the repositories."""


class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class DatabaseConnectionError(DatabaseError):
    """DATABASE_URL missing or the server is unreachable."""
    pass


class DatabaseConstraintError(DatabaseError):
    """Unique or foreign key constraint violated."""
    pass


class DatabaseOperationError(DatabaseError):
    """Any other failed query or write."""
    pass


class EntityNotFoundError(DatabaseError):
    """Requested entity not found."""
    pass


class InviteCodeExhaustedError(DatabaseError):
    """Could not generate an unused workspace invite code."""
    pass
