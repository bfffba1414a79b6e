"""
Kubeship shared data models.

These models define the structure of all data passed across the
HTTP and WebSocket boundary.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

REQUIRED_DEPLOY_FIELDS = ("image_name", "app_name")

# Build Jobs are named {app_name}-{13-digit epoch ms} and must fit a 63-char label
MAX_BUILD_APP_NAME_LENGTH = 63 - len("-") - 13


# Enums


class DeployStatus(str, Enum):
    """Immediate outcome of a deploy request."""

    COMPLETED = "completed"
    STARTED = "started"


class ControlAction(str, Enum):
    """Inbound WebSocket control actions."""

    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"


class LogLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# Request Models (API Input)


class DeployRequest(BaseModel):
    """Request to deploy (or build and deploy) an application."""

    image_name: str = Field(..., min_length=1, description="Image reference to run")
    app_name: str = Field(
        ...,
        description="Cluster-unique app name, also used as the pod label value",
        min_length=1,
        max_length=63,
        pattern="^[a-z]([-a-z0-9]*[a-z0-9])?$",
    )
    port: int = Field(default=3000, ge=1, le=65535, description="Container listening port")
    registry_auth: Optional[str] = Field(
        None, min_length=1, description="Existing image pull secret name"
    )
    domain: Optional[str] = Field(
        None, min_length=1, description="Public host name; defaults to {app_name}.{base_domain}"
    )
    repo_url: Optional[str] = Field(
        None, min_length=1, description="Git repository to build the image from"
    )
    registry: Optional[str] = Field(
        None, min_length=1, description="Registry prefix for built images"
    )

    @property
    def is_build(self) -> bool:
        return self.repo_url is not None

    @model_validator(mode="after")
    def check_build_app_name_length(self) -> "DeployRequest":
        if self.is_build and len(self.app_name) > MAX_BUILD_APP_NAME_LENGTH:
            raise ValueError(
                f"app_name must be at most {MAX_BUILD_APP_NAME_LENGTH} characters "
                "for build deploys"
            )
        return self


class ControlMessage(BaseModel):
    """Subscribe/unsubscribe message sent over the event channel."""

    action: ControlAction
    job_id: str = Field(..., min_length=1)


# Response Models (API Output)


class ResourceResult(BaseModel):
    kind: str
    name: str
    action: str
    error: Optional[str] = None


class DeployResponse(BaseModel):
    """Response after a deploy request converged."""

    job_id: str
    status: DeployStatus
    domain: str
    url: str
    resources: List[ResourceResult] = Field(default_factory=list)


class StatusResponse(BaseModel):
    """Poll-based job status."""

    job_id: str
    status: str
    phase: str
    message: str
    timestamp: str


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None


def _is_missing(err: Dict[str, Any]) -> bool:
    """Absent, empty and null required fields all count as missing."""
    if err.get("type") in ("missing", "string_too_short"):
        return True
    return err.get("type") == "string_type" and err.get("input") is None


def describe_validation_errors(errors: List[Dict[str, Any]], body: Any) -> Dict[str, Any]:
    """
    Turn pydantic validation errors into the API's 400 body.

    Missing, null or empty required fields are reported the same way regardless
    of which one tripped, so clients get one stable message.
    """
    missing = set()
    for err in errors:
        loc = err.get("loc", ())
        if err.get("type") == "json_invalid":
            return {"error": "Invalid JSON body"}
        if loc == ("body",) and err.get("type") == "missing":
            missing.update(REQUIRED_DEPLOY_FIELDS)
        elif len(loc) >= 2 and loc[1] in REQUIRED_DEPLOY_FIELDS and _is_missing(err):
            missing.add(loc[1])

    if missing:
        received = body if isinstance(body, dict) else {}
        return {
            "error": f"Missing required fields: {', '.join(REQUIRED_DEPLOY_FIELDS)}",
            "received": {f: bool(received.get(f)) for f in REQUIRED_DEPLOY_FIELDS},
        }

    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ())[1:]) or "body",
            "message": err.get("msg"),
        }
        for err in errors
    ]
    return {"error": "Invalid request", "details": details}
