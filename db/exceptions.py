class RepositoryError(Exception):
    """Base class for read-path outcomes that are not infrastructure failures."""


class EntityNotFoundError(RepositoryError):
    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key} not found")


class ValidationRejectedError(RepositoryError):
    """The request was understood but violates a domain rule; nothing was written."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
