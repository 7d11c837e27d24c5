"""
Service-level exceptions.

Services raise these; the exception handlers registered in app.main translate
them into HTTP responses. Store failures surface as SQLAlchemy errors and are
mapped to a generic 500.
"""


class ServiceError(Exception):
    """Base class for expected, user-facing service outcomes."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ServiceError):
    """The referenced entity or edge does not exist."""

    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id: int) -> "NotFoundError":
        return cls(f"{entity} {entity_id} not found")


class ConflictError(ServiceError):
    """A unique key (entity name, edge pair) already exists."""

    status_code = 400
