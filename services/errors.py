class NotFoundError(LookupError):
    """The record does not exist or does not belong to the caller."""


class OwnershipError(PermissionError):
    """A referenced category or merchant belongs to another user."""
