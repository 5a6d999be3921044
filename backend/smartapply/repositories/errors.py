"""Remote store error taxonomy.

JobSearchRepository translates driver exceptions into these classes so the
services can decide between degrading, retrying and surfacing without
knowing anything about SQLAlchemy or Postgres error codes.
"""


__all__ = [
    "StoreError",
    "RemoteUnavailableError",
    "NotFoundError",
    "ProfileMissingError",
    "PreferenceMissingError",
    "AlreadyExistsError",
]


class StoreError(Exception):
    """Base class for remote store failures."""

    pass


class RemoteUnavailableError(StoreError):
    """A required schema object (column, table, procedure) is missing.

    This is a deployment problem, not a slow dependency. It is never
    retried and is always logged at error level.
    """

    pass


class NotFoundError(StoreError):
    """The requested record does not exist (or has no embedding)."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class ProfileMissingError(StoreError):
    """The user has no stored profile row at all."""

    pass


class PreferenceMissingError(StoreError):
    """The user's profile exists but has no preference embedding yet."""

    pass


class AlreadyExistsError(StoreError):
    """A create raced with another request that created the row first."""

    pass
