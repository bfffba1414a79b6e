"""
API Module - Black Box Interface

Purpose: HTTP/WebSocket request and response contracts
Interface: Pydantic models
Hidden: Field validation rules, error body formatting

The API module only orchestrates - it contains no business logic.
All logic is delegated to appropriate modules.
"""

from .models import (
    ControlAction,
    ControlMessage,
    DeployRequest,
    DeployResponse,
    DeployStatus,
    ErrorResponse,
    HealthResponse,
    LogLevel,
    ResourceResult,
    StatusResponse,
    describe_validation_errors,
)

__all__ = [
    "DeployRequest",
    "DeployResponse",
    "DeployStatus",
    "ResourceResult",
    "StatusResponse",
    "HealthResponse",
    "ErrorResponse",
    "ControlAction",
    "ControlMessage",
    "LogLevel",
    "describe_validation_errors",
]
