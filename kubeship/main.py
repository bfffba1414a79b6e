"""
Kubeship - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Exposes the deploy/status/logs API and the event channel

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.websockets import WebSocketDisconnect

from kubeship import __version__
from kubeship.config.provider import ConfigProvider, EnvConfigProvider
from kubeship.logging_config import get_logging_config
from kubeship.modules.api import (
    ControlAction,
    ControlMessage,
    DeployRequest,
    DeployResponse,
    ErrorResponse,
    HealthResponse,
    StatusResponse,
    describe_validation_errors,
)
from kubeship.modules.broadcast import BroadcastModule, WebSocketConnection
from kubeship.modules.config import get_config
from kubeship.modules.deploy import DeployFailedError, DeployModule
from kubeship.modules.jobs import JobNotFoundError, StatusModule
from kubeship.modules.logs import LogStreamModule, PodNotFoundError
from kubeship.modules.store import InMemoryResourceStore, ResourceStore, ResourceStoreError

# Get configuration
config = get_config()

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger("kubeship.main")


async def create_store(provider: ConfigProvider) -> ResourceStore:
    """Build the resource store selected by STORE_BACKEND."""
    namespace = config.get("namespace")
    if config.get("store_backend") == "memory":
        logger.warning("Using in-memory resource store - nothing reaches a cluster")
        return InMemoryResourceStore(namespace=namespace)

    from kubeship.modules.store.kubernetes import KubernetesResourceStore

    return await KubernetesResourceStore.connect(provider.get_cluster_config(), namespace=namespace)


def create_app(
    store: Optional[ResourceStore] = None,
    config_provider: Optional[ConfigProvider] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        store: Pre-built resource store; created from config at startup if omitted
        config_provider: Typed config source; environment-backed if omitted
    """
    provider = config_provider or EnvConfigProvider()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - initialize and cleanup resources.
        """
        logger.info("Starting Kubeship API...")

        resource_store = store or await create_store(provider)
        broadcast = BroadcastModule()

        app.state.store = resource_store
        app.state.broadcast = broadcast
        app.state.deploy_module = DeployModule(
            resource_store,
            broadcast,
            routing=provider.get_routing_config(),
            build=provider.get_build_config(),
            cluster=provider.get_cluster_config(),
        )
        app.state.status_module = StatusModule(resource_store)
        app.state.log_module = LogStreamModule(resource_store)

        logger.info(f"Kubeship API started (namespace: {resource_store.namespace})")

        yield

        logger.info("Shutting down Kubeship API...")
        broadcast.close()
        await resource_store.close()
        logger.info("Kubeship API shutdown complete")

    app = FastAPI(
        title="Kubeship API",
        description="Kubeship - one-shot application deployment",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get("cors_origins", ["*"]),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    return app


router = APIRouter()


# Dependency injection helpers


def get_deploy_module(request: Request) -> DeployModule:
    module = getattr(request.app.state, "deploy_module", None)
    if not module:
        raise HTTPException(503, "Service not initialized")
    return module


def get_status_module(request: Request) -> StatusModule:
    module = getattr(request.app.state, "status_module", None)
    if not module:
        raise HTTPException(503, "Service not initialized")
    return module


def get_log_module(request: Request) -> LogStreamModule:
    module = getattr(request.app.state, "log_module", None)
    if not module:
        raise HTTPException(503, "Service not initialized")
    return module


# Deploy Endpoints


@router.post(
    "/deploy",
    response_model=DeployResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def deploy(payload: DeployRequest, deploy_module: DeployModule = Depends(get_deploy_module)):
    """
    Converge Deployment, Service and Ingress for an app.

    Returns:
        200: Resources converged (or build started)
        400: Missing or invalid fields
        500: Resource store failure; `resources` shows how far convergence got
    """
    try:
        result = await deploy_module.deploy(payload)
    except DeployFailedError as e:
        content = {"error": e.message, "job_id": e.job_id}
        if e.report:
            content["resources"] = e.report.to_list()
        return JSONResponse(status_code=500, content=content)

    return result.to_dict()


@router.get(
    "/status/{job_id}",
    response_model=StatusResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_status(job_id: str, status_module: StatusModule = Depends(get_status_module)):
    """
    Poll a job's status.

    Returns:
        200: Current status derived from live counters
        404: No Job or Deployment backs this id
        500: Resource store failure
    """
    try:
        status = await status_module.resolve(job_id)
    except JobNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message})
    except ResourceStoreError as e:
        logger.error(f"Status lookup for {job_id} failed: {e.message}")
        return JSONResponse(status_code=500, content={"error": e.message})

    return status.to_dict()


@router.get("/logs/{job_id}", responses={404: {"model": ErrorResponse}})
async def stream_logs(job_id: str, log_module: LogStreamModule = Depends(get_log_module)):
    """
    Stream a build job's pod output as chunked plain text.

    Returns:
        200: Log bytes until the pod closes its stream or the client leaves
        404: No pod carries the job's label
        500: Resource store failure before streaming started
    """
    try:
        chunks = await log_module.open_stream(job_id)
    except PodNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message})
    except ResourceStoreError as e:
        logger.error(f"Log lookup for {job_id} failed: {e.message}")
        return JSONResponse(status_code=500, content={"error": e.message})

    return StreamingResponse(chunks, media_type="text/plain")


# Event channel


@router.websocket("/ws")
async def event_channel(websocket: WebSocket):
    """
    Real-time job events.

    Clients send `{"action": "subscribe"|"unsubscribe", "job_id": ...}` and
    receive `{job_id, level, message, timestamp}` for subscribed jobs.
    """
    broadcast: BroadcastModule = websocket.app.state.broadcast
    await websocket.accept()
    subscription = broadcast.register(WebSocketConnection(websocket))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = ControlMessage.model_validate_json(raw)
            except ValidationError:
                await websocket.send_json({"error": "Invalid control message"})
                continue

            if message.action == ControlAction.SUBSCRIBE:
                broadcast.subscribe(subscription, message.job_id)
            else:
                broadcast.unsubscribe(subscription, message.job_id)
            await websocket.send_json({"action": f"{message.action.value}d", "job_id": message.job_id})

    except WebSocketDisconnect:
        logger.info(f"Observer disconnected ({len(subscription.job_ids)} subscriptions dropped)")
    finally:
        broadcast.unregister(subscription)


# Health/Monitoring Endpoints


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Minimal health check endpoint for Kubernetes readiness and liveness checks.

    Returns:
        200: Service is running
    """
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


# Error handlers


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors as client errors."""
    content = describe_validation_errors(exc.errors(), exc.body)
    logger.warning(f"Rejected {request.method} {request.url.path}: {content['error']}")
    return JSONResponse(status_code=400, content=content)


app = create_app()
