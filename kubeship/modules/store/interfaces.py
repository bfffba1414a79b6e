"""
Resource store capability interface.

The convergence engine, status resolver and log streamer only ever talk
to the cluster through this protocol, so any of them can run against the
in-memory fake.
"""

from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Protocol


class ResourceKind(str, Enum):
    """Cluster resource kinds handled by the store."""

    DEPLOYMENT = "Deployment"
    SERVICE = "Service"
    INGRESS = "Ingress"
    JOB = "Job"
    POD = "Pod"


class ResourceStore(Protocol):
    """Namespaced CRUD access to cluster resources."""

    namespace: str

    async def read(self, kind: ResourceKind, name: str) -> Dict[str, Any]:
        """Return the live document, raising ResourceNotFoundError if absent."""
        ...

    async def create(self, kind: ResourceKind, document: Dict[str, Any]) -> Dict[str, Any]:
        """Create a resource from a desired-state document."""
        ...

    async def replace(
        self, kind: ResourceKind, name: str, document: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Fully replace a resource, raising ResourceNotFoundError if absent."""
        ...

    async def list_by_label(
        self, kind: ResourceKind, labels: Dict[str, str]
    ) -> List[Dict[str, Any]]:
        """List resources whose labels match every given key/value pair."""
        ...

    async def stream_logs(self, pod_name: str) -> AsyncIterator[bytes]:
        """Open a follow request on a pod and return an iterator of raw chunks.

        Faults opening the request raise here; the iterator runs until the
        source closes.
        """
        ...

    async def close(self) -> None:
        """Release client connections."""
        ...


def format_label_selector(labels: Dict[str, str]) -> str:
    """Render a label dict as a Kubernetes equality selector."""
    return ",".join(f"{key}={value}" for key, value in sorted(labels.items()))
