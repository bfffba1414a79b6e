"""
Store Module - Black Box Interface

Purpose: Abstract all cluster resource access
Interface: read(), create(), replace(), list_by_label(), stream_logs()
Hidden: Kubernetes API groups, client configuration, error translation

Can be replaced with any backend (in-memory fake, another cluster API)
without affecting other modules.
"""

from .exceptions import ResourceNotFoundError, ResourceStoreError
from .interfaces import ResourceKind, ResourceStore, format_label_selector
from .memory import InMemoryResourceStore, StoreCall

__all__ = [
    "ResourceKind",
    "ResourceStore",
    "ResourceStoreError",
    "ResourceNotFoundError",
    "InMemoryResourceStore",
    "StoreCall",
    "format_label_selector",
]
