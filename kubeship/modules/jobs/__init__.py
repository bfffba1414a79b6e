"""
Jobs Module - Black Box Interface

Purpose: Job identity and poll-based status resolution
Interface: JobId.generate(), JobId.parse(), StatusModule.resolve()
Hidden: Id format, Job vs Deployment lookup, counter-to-state mapping
"""

from .identity import InvalidJobIdError, JobId
from .status import (
    JobNotFoundError,
    JobState,
    JobStatus,
    StatusModule,
    build_job_state,
    deployment_state,
)

__all__ = [
    "JobId",
    "InvalidJobIdError",
    "JobNotFoundError",
    "JobState",
    "JobStatus",
    "StatusModule",
    "build_job_state",
    "deployment_state",
]
