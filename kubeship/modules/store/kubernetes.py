"""
Kubernetes-backed resource store.

Thin adapter over kubernetes_asyncio: dispatches each ResourceKind to the
matching API group, returns plain dicts, and maps API errors and transport faults onto the
store error taxonomy.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List

import aiohttp
from kubernetes_asyncio import client, config
from kubernetes_asyncio.client.rest import ApiException

from kubeship.config.provider import ClusterConfig

from .exceptions import ResourceNotFoundError, ResourceStoreError
from .interfaces import ResourceKind, format_label_selector

logger = logging.getLogger("kubeship.store")

# Faults a kubernetes_asyncio call can raise
STORE_FAULTS = (ApiException, aiohttp.ClientError, asyncio.TimeoutError)

# kind -> (api group attribute, method suffix)
_KIND_DISPATCH = {
    ResourceKind.DEPLOYMENT: ("apps", "deployment"),
    ResourceKind.SERVICE: ("core", "service"),
    ResourceKind.INGRESS: ("networking", "ingress"),
    ResourceKind.JOB: ("batch", "job"),
    ResourceKind.POD: ("core", "pod"),
}


def _error_detail(exc: ApiException) -> str:
    """Pull the most useful message out of a Kubernetes API error."""
    detail = exc.reason or f"HTTP {exc.status}"
    if exc.body:
        try:
            body = json.loads(exc.body)
            if "message" in body:
                detail = body["message"]
            causes = (body.get("details") or {}).get("causes")
            if causes:
                cause_msgs = [
                    f"{c.get('field', 'unknown')}: {c.get('message', 'unknown')}" for c in causes
                ]
                detail = f"{detail} | Causes: {'; '.join(cause_msgs)}"
        except (json.JSONDecodeError, AttributeError, TypeError):
            pass
    return detail


class KubernetesResourceStore:
    """Namespaced resource store talking to a live cluster."""

    def __init__(self, api_client: client.ApiClient, namespace: str = "default"):
        """
        Initialize the store.

        Args:
            api_client: Configured kubernetes_asyncio ApiClient
            namespace: Namespace every call is scoped to
        """
        self.api_client = api_client
        self.namespace = namespace
        self._apis = {
            "apps": client.AppsV1Api(api_client),
            "core": client.CoreV1Api(api_client),
            "networking": client.NetworkingV1Api(api_client),
            "batch": client.BatchV1Api(api_client),
        }

    @classmethod
    async def connect(
        cls, cluster: ClusterConfig, namespace: str = "default"
    ) -> "KubernetesResourceStore":
        """
        Load cluster credentials and build a store.

        Uses the service account when running in-cluster, otherwise the
        configured kubeconfig file and context.
        """
        if cluster.in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
        else:
            await config.load_kube_config(
                config_file=cluster.kubeconfig_path, context=cluster.context
            )
            logger.info(f"Loaded kubeconfig from {cluster.kubeconfig_path}")
        return cls(client.ApiClient(), namespace=namespace)

    def _method(self, kind: ResourceKind, verb: str):
        group, suffix = _KIND_DISPATCH[kind]
        return getattr(self._apis[group], f"{verb}_namespaced_{suffix}")

    def _to_dict(self, obj: Any) -> Dict[str, Any]:
        return self.api_client.sanitize_for_serialization(obj)

    def _translate(self, exc: Exception, kind: ResourceKind, name: str) -> ResourceStoreError:
        if isinstance(exc, ApiException):
            if exc.status == 404:
                return ResourceNotFoundError(kind.value, name)
            detail, status = _error_detail(exc), exc.status
        else:
            # Transport fault: the API server never answered
            detail, status = str(exc) or type(exc).__name__, None
        logger.error(f"Kubernetes API error on {kind.value} '{name}' ({status}): {detail}")
        return ResourceStoreError(detail, status=status)

    async def read(self, kind: ResourceKind, name: str) -> Dict[str, Any]:
        try:
            obj = await self._method(kind, "read")(name, self.namespace)
        except STORE_FAULTS as e:
            raise self._translate(e, kind, name) from e
        return self._to_dict(obj)

    async def create(self, kind: ResourceKind, document: Dict[str, Any]) -> Dict[str, Any]:
        name = document.get("metadata", {}).get("name", "")
        try:
            obj = await self._method(kind, "create")(self.namespace, document)
        except STORE_FAULTS as e:
            raise self._translate(e, kind, name) from e
        return self._to_dict(obj)

    async def replace(
        self, kind: ResourceKind, name: str, document: Dict[str, Any]
    ) -> Dict[str, Any]:
        try:
            obj = await self._method(kind, "replace")(name, self.namespace, document)
        except STORE_FAULTS as e:
            raise self._translate(e, kind, name) from e
        return self._to_dict(obj)

    async def list_by_label(
        self, kind: ResourceKind, labels: Dict[str, str]
    ) -> List[Dict[str, Any]]:
        selector = format_label_selector(labels)
        try:
            result = await self._method(kind, "list")(self.namespace, label_selector=selector)
        except STORE_FAULTS as e:
            raise self._translate(e, kind, selector) from e
        return self._to_dict(result).get("items") or []

    async def stream_logs(self, pod_name: str) -> AsyncIterator[bytes]:
        """
        Open a follow request on a pod's log and return its chunk iterator.

        The request is awaited here, so a pod that cannot serve logs yet
        (still initializing, gone) fails before the caller commits to a
        response. The HTTP response is released when iteration ends.
        """
        core = self._apis["core"]
        try:
            response = await core.read_namespaced_pod_log(
                pod_name, self.namespace, follow=True, _preload_content=False
            )
        except STORE_FAULTS as e:
            raise self._translate(e, ResourceKind.POD, pod_name) from e
        return _iter_response(response)

    async def close(self) -> None:
        await self.api_client.close()


async def _iter_response(response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.content.iter_any():
            yield chunk
    finally:
        response.release()
