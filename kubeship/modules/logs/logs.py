import logging
from typing import AsyncIterator

from kubeship.modules.store import ResourceKind, ResourceStore

logger = logging.getLogger("kubeship.logs")


class PodNotFoundError(LookupError):
    """No pod carries the job's `job-name` label."""

    def __init__(self, job_id: str):
        super().__init__("Pod not found")
        self.job_id = job_id
        self.message = "Pod not found"


class LogStreamModule:
    def __init__(self, store: ResourceStore):
        self.store = store

    async def find_pod(self, job_id: str) -> str:
        """Return the name of the first pod created for `job_id`."""
        pods = await self.store.list_by_label(ResourceKind.POD, {"job-name": job_id})
        if not pods:
            raise PodNotFoundError(job_id)
        pod_name = pods[0]["metadata"]["name"]
        logger.info(f"Streaming logs for job {job_id} from pod {pod_name}")
        return pod_name

    async def open_stream(self, job_id: str) -> AsyncIterator[bytes]:
        """
        Locate the job's pod and return a following log iterator.

        Both the pod lookup and the follow request complete here, before any
        byte is sent, so a missing pod (404) or a pod that cannot serve logs
        yet (500) is still answered with a JSON error. Faults after that point
        propagate out of the iterator.
        """
        pod_name = await self.find_pod(job_id)
        return await self.store.stream_logs(pod_name)
