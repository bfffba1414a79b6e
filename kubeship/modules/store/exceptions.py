"""Resource store error taxonomy."""

from typing import Optional


class ResourceStoreError(Exception):
    """A resource store call failed (authorization, validation, conflict, network)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ResourceNotFoundError(ResourceStoreError):
    """The named resource does not exist in the store."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} '{name}' not found", status=404)
        self.kind = kind
        self.name = name
