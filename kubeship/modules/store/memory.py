"""
In-memory resource store.

Dict-backed stand-in for a cluster. Used for local runs
(STORE_BACKEND=memory) and as the fake behind the test suite: it records
every call, can be primed with live status counters and pod logs, and can
be told to fail specific operations.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from .exceptions import ResourceNotFoundError, ResourceStoreError
from .interfaces import ResourceKind

logger = logging.getLogger("kubeship.store.memory")


@dataclass
class StoreCall:
    """Record of a single store operation."""
    operation: str
    kind: ResourceKind
    name: str


class InMemoryResourceStore:
    """Namespaced resource store that keeps documents in a dict."""

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        self._objects: Dict[Tuple[ResourceKind, str], Dict[str, Any]] = {}
        self._failures: Dict[Tuple[str, ResourceKind], ResourceStoreError] = {}
        self.pod_logs: Dict[str, List[bytes]] = {}
        self.calls: List[StoreCall] = []

    # Test/priming helpers

    def fail_on(self, operation: str, kind: ResourceKind, error: ResourceStoreError) -> None:
        """Make every future `operation` on `kind` raise `error`."""
        self._failures[(operation, kind)] = error

    def put(self, kind: ResourceKind, document: Dict[str, Any]) -> None:
        """Insert a document directly, bypassing call recording."""
        doc = copy.deepcopy(document)
        doc.setdefault("metadata", {}).setdefault("generation", 1)
        self._objects[(kind, doc["metadata"]["name"])] = doc

    def get(self, kind: ResourceKind, name: str) -> Optional[Dict[str, Any]]:
        """Peek at a stored document without recording a call."""
        return self._objects.get((kind, name))

    def set_status(self, kind: ResourceKind, name: str, **status: Any) -> None:
        """Overwrite the live status block of a stored resource."""
        self._objects[(kind, name)]["status"] = dict(status)

    def calls_for(self, operation: str, kind: Optional[ResourceKind] = None) -> List[StoreCall]:
        return [
            c for c in self.calls
            if c.operation == operation and (kind is None or c.kind == kind)
        ]

    def _record(self, operation: str, kind: ResourceKind, name: str) -> None:
        self.calls.append(StoreCall(operation, kind, name))
        error = self._failures.get((operation, kind))
        if error is not None:
            raise error

    # ResourceStore protocol

    async def read(self, kind: ResourceKind, name: str) -> Dict[str, Any]:
        self._record("read", kind, name)
        doc = self._objects.get((kind, name))
        if doc is None:
            raise ResourceNotFoundError(kind.value, name)
        return copy.deepcopy(doc)

    async def create(self, kind: ResourceKind, document: Dict[str, Any]) -> Dict[str, Any]:
        name = document["metadata"]["name"]
        self._record("create", kind, name)
        if (kind, name) in self._objects:
            raise ResourceStoreError(f"{kind.value} '{name}' already exists", status=409)
        doc = copy.deepcopy(document)
        doc["metadata"]["generation"] = 1
        self._objects[(kind, name)] = doc
        return copy.deepcopy(doc)

    async def replace(
        self, kind: ResourceKind, name: str, document: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._record("replace", kind, name)
        current = self._objects.get((kind, name))
        if current is None:
            raise ResourceNotFoundError(kind.value, name)

        doc = copy.deepcopy(document)
        generation = current["metadata"].get("generation", 1)
        if _desired(current) != _desired(doc):
            generation += 1
        doc["metadata"]["generation"] = generation
        # Live status survives a replace
        if "status" in current:
            doc["status"] = current["status"]
        self._objects[(kind, name)] = doc
        return copy.deepcopy(doc)

    async def list_by_label(
        self, kind: ResourceKind, labels: Dict[str, str]
    ) -> List[Dict[str, Any]]:
        self._record("list", kind, ",".join(f"{k}={v}" for k, v in sorted(labels.items())))
        matches = []
        for (obj_kind, _), doc in self._objects.items():
            if obj_kind != kind:
                continue
            obj_labels = doc.get("metadata", {}).get("labels") or {}
            if all(obj_labels.get(k) == v for k, v in labels.items()):
                matches.append(copy.deepcopy(doc))
        return matches

    async def stream_logs(self, pod_name: str) -> AsyncIterator[bytes]:
        self._record("logs", ResourceKind.POD, pod_name)
        if (ResourceKind.POD, pod_name) not in self._objects:
            raise ResourceNotFoundError(ResourceKind.POD.value, pod_name)
        return _iter_chunks(list(self.pod_logs.get(pod_name, [])))

    async def close(self) -> None:
        logger.debug("In-memory store closed")


def _desired(document: Dict[str, Any]) -> Dict[str, Any]:
    """Strip store-managed fields so two documents compare on desired state only."""
    doc = copy.deepcopy(document)
    doc.pop("status", None)
    doc.get("metadata", {}).pop("generation", None)
    return doc


async def _iter_chunks(chunks: List[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk
