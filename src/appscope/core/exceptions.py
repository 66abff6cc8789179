from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class AdvanceFilterError(Exception):
    """Base class for errors raised while building or running an advanced filter."""

    def __init__(self, message: str = "Invalid filter request"):
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message}"


class FilterValidationError(AdvanceFilterError, ValueError):
    """
    Raised when a filter descriptor or its entity binding fails a shape constraint,
    e.g. mismatched parallel arrays or a group request without a sort column.
    """

    pass


class UnknownRelationError(AdvanceFilterError):
    """Raised when a nested filter, preload or parent names a relation the entity does not declare."""

    def __init__(self, entity: str, relation: str):
        self.entity = entity
        self.relation = relation
        super().__init__(f"Unknown relation '{relation}' on entity '{entity}'")


class UnknownColumnError(AdvanceFilterError):
    """Raised when a filter, search, sort, range or group column is not a declared column of the entity."""

    def __init__(self, entity: str, column: str, reason: str | None = None):
        self.entity = entity
        self.column = column
        message = f"Unknown column '{column}' on entity '{entity}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MissingTenantContext(Exception):
    """Raised when tenant scoping is requested but no application id was resolved."""

    def __init__(self, message: str = "Application id is required for this query"):
        self.message = message
        super().__init__(self.message)


class NoEntryFound(Exception):
    """
    This exception is raised when a user tries to access a resource that does not exist.
    """

    pass


class PermissionDenied(Exception):
    """
    This exception is raised when a caller tries to access a resource that they do not have permission to access.
    """

    pass


def registered_exceptions() -> dict[type[Exception], tuple[int, str]]:
    """Returns the HTTP status and default message for every typed error the service surfaces."""
    return {
        FilterValidationError: (400, "Invalid filter request"),
        UnknownRelationError: (400, "Unknown relation"),
        UnknownColumnError: (400, "Unknown column"),
        MissingTenantContext: (401, "Application id is missing"),
        PermissionDenied: (403, "You do not have permission to perform this action"),
        NoEntryFound: (404, "The requested resource was not found"),
        IntegrityError: (409, "Database integrity error"),
        SQLAlchemyError: (500, "Database error"),
    }
