import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict

from kubeship.modules.store import ResourceKind, ResourceNotFoundError, ResourceStore

from .identity import InvalidJobIdError, JobId

logger = logging.getLogger("kubeship.jobs")


class JobState(str, Enum):
    """Coarse job state reported to pollers."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobNotFoundError(LookupError):
    """Neither a build Job nor a Deployment backs the job id."""

    def __init__(self, job_id: str, message: str = "Deployment not found"):
        super().__init__(message)
        self.job_id = job_id
        self.message = message


@dataclass
class JobStatus:
    job_id: str
    status: JobState
    phase: str
    message: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def _counter(document: Dict[str, Any], key: str):
    return (document.get("status") or {}).get(key)


def deployment_state(deployment: Dict[str, Any]):
    """Map Deployment replica counters to (state, phase, message)."""
    ready = _counter(deployment, "readyReplicas") or 0
    if ready > 0:
        return JobState.COMPLETED, "deployed", "Deployment successful"
    # Only an explicit zero counts; a missing counter means not reported yet
    if _counter(deployment, "replicas") == 0:
        return JobState.FAILED, "failed", "Deployment failed"
    return JobState.RUNNING, "deploying", "Deployment in progress"


def build_job_state(job: Dict[str, Any]):
    """Map Job pod counters to (state, phase, message)."""
    if (_counter(job, "succeeded") or 0) > 0:
        return JobState.COMPLETED, "deployed", "Build and deployment successful"
    if (_counter(job, "failed") or 0) > 0:
        return JobState.FAILED, "failed", "Build failed"
    return JobState.RUNNING, "building", "Build in progress"


class StatusModule:
    def __init__(self, store: ResourceStore):
        """
        Initialize status resolver.

        Args:
            store: Resource store used to read live Job/Deployment objects
        """
        self.store = store

    async def resolve(self, job_id: str) -> JobStatus:
        """
        Answer a status poll for a job id.

        Args:
            job_id: Job identifier returned by a deploy request

        Returns:
            JobStatus derived from live counters

        Raises:
            JobNotFoundError: If the id is malformed or nothing backs it
            ResourceStoreError: On any other store fault

        Logic:
        1. Parse the app name out of the job id
        2. A build Job named after the job id wins if it exists
        3. Otherwise fall back to the Deployment named after the app
        """
        try:
            parsed = JobId.parse(job_id)
        except InvalidJobIdError:
            logger.info(f"Status requested for malformed job id {job_id!r}")
            raise JobNotFoundError(job_id)

        try:
            job = await self.store.read(ResourceKind.JOB, job_id)
            state, phase, message = build_job_state(job)
        except ResourceNotFoundError:
            try:
                deployment = await self.store.read(ResourceKind.DEPLOYMENT, parsed.app_name)
            except ResourceNotFoundError:
                raise JobNotFoundError(job_id)
            state, phase, message = deployment_state(deployment)

        return JobStatus(
            job_id=job_id,
            status=state,
            phase=phase,
            message=message,
            timestamp=datetime.now(UTC).isoformat(),
        )
