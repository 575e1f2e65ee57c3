"""Domain exceptions for the access bounded context.

Every component surfaces exactly one of four kinds of failure. None of them
are transient, so none of them should be retried.
"""


class AccessError(Exception):
    """Base class for all access-control failures."""

    pass


class HiddenResourceError(AccessError):
    """Common parent of NotFoundError and ForbiddenError.

    Callers that must not leak whether a resource exists can catch this
    single type and render one generic "not found or not permitted" message.
    """

    pass


class NotFoundError(HiddenResourceError):
    """Raised when a group, share, resource, member or invitation does not exist."""

    def __init__(self, entity: str, entity_id: str, message: str | None = None):
        super().__init__(message or f"{entity.capitalize()} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(HiddenResourceError):
    """Raised when a permission check fails.

    The failed check is kept on the exception so that callers can log it
    without exposing it to the principal.
    """

    def __init__(self, check: str, message: str):
        super().__init__(message)
        self.check = check


class ConflictError(AccessError):
    """Raised when a mutation would violate an invariant.

    Examples are removing the last owner of a group, inviting into a group
    that is at capacity, or adding a duplicate member.
    """

    def __init__(self, invariant: str, message: str):
        super().__init__(message)
        self.invariant = invariant


class ValidationError(AccessError):
    """Raised when input is malformed (empty name, out-of-range capacity)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
