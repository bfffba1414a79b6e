import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kubeship.config.provider import BuildConfig, ClusterConfig, RoutingConfig
from kubeship.modules.api.models import DeployRequest, DeployStatus, LogLevel
from kubeship.modules.broadcast import BroadcastModule
from kubeship.modules.convergence import (
    ConvergenceError,
    ConvergenceModule,
    ConvergenceReport,
    ResourceOutcome,
)
from kubeship.modules.jobs import JobId
from kubeship.modules.manifests import AppSpec, build_image_job, build_resource_set
from kubeship.modules.store import ResourceKind, ResourceStore, ResourceStoreError

logger = logging.getLogger("kubeship.deploy")


@dataclass
class DeployResult:
    job_id: str
    status: DeployStatus
    domain: str
    url: str
    resources: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "domain": self.domain,
            "url": self.url,
            "resources": self.resources,
        }


class DeployFailedError(Exception):
    """A deploy request failed after its job id was issued."""

    def __init__(self, job_id: str, message: str, report: Optional[ConvergenceReport] = None):
        super().__init__(message)
        self.job_id = job_id
        self.message = message
        self.report = report


class DeployModule:
    def __init__(
        self,
        store: ResourceStore,
        broadcast: BroadcastModule,
        routing: RoutingConfig,
        build: BuildConfig,
        cluster: ClusterConfig,
    ):
        """
        Initialize deploy orchestration.

        Args:
            store: Resource store for the target namespace
            broadcast: Event channel that receives per-step log lines
            routing: Domain and ingress settings
            build: In-cluster image build settings
            cluster: Cluster defaults (pull secret)
        """
        self.store = store
        self.broadcast = broadcast
        self.routing = routing
        self.build = build
        self.cluster = cluster
        self.convergence = ConvergenceModule(store)

    def app_spec_for(self, request: DeployRequest) -> AppSpec:
        """Resolve request defaults into an AppSpec."""
        if request.is_build:
            registry = request.registry or self.build.registry
            image_reference = f"{registry}/{request.image_name}:latest"
            registry_auth = request.registry_auth or self.build.registry_auth
        else:
            image_reference = request.image_name
            registry_auth = request.registry_auth or self.cluster.image_pull_secret

        return AppSpec(
            app_name=request.app_name,
            image_reference=image_reference,
            port=request.port,
            registry_auth_ref=registry_auth,
            domain=request.domain or self.routing.default_domain(request.app_name),
        )

    async def deploy(self, request: DeployRequest, now_ms: Optional[int] = None) -> DeployResult:
        """
        Converge an app's resources for a validated deploy request.

        Args:
            request: Validated deploy request
            now_ms: Override for the job id timestamp

        Returns:
            DeployResult with the job id and per-resource outcomes

        Raises:
            DeployFailedError: If the build Job or any resource failed to apply

        Logic:
        1. Issue a job id
        2. For build deploys, create the BuildKit Job first
        3. Converge Deployment, Service, Ingress in order
        4. Publish one event per step to subscribed observers
        """
        job_id = str(JobId.generate(request.app_name, now_ms))
        spec = self.app_spec_for(request)
        logger.info(
            f"Deploying {spec.app_name} (job {job_id}, image {spec.image_reference}, "
            f"domain {spec.domain})"
        )

        if request.is_build:
            await self._start_build(job_id, request.repo_url, spec)

        resources = build_resource_set(spec, self.store.namespace, self.routing)

        async def publish_outcome(outcome: ResourceOutcome) -> None:
            level = LogLevel.ERROR if outcome.error else LogLevel.INFO
            text = f"{outcome.kind} {outcome.name} {outcome.action.value}"
            if outcome.error:
                text = f"{text}: {outcome.error}"
            await self.broadcast.publish(job_id, level.value, text)

        try:
            report = await self.convergence.converge_resource_set(resources, publish_outcome)
        except ConvergenceError as e:
            logger.error(f"Deploy {job_id} stopped partway: {e.report.to_list()}")
            raise DeployFailedError(job_id, str(e), e.report) from e

        await self.broadcast.publish(job_id, LogLevel.INFO.value, f"{spec.app_name} converged")
        return DeployResult(
            job_id=job_id,
            status=DeployStatus.STARTED if request.is_build else DeployStatus.COMPLETED,
            domain=spec.domain,
            url=f"{self.routing.scheme}://{spec.domain}",
            resources=report.to_list(),
        )

    async def _start_build(self, job_id: str, repo_url: str, spec: AppSpec) -> None:
        job = build_image_job(
            job_id,
            repo_url,
            spec.image_reference,
            spec.registry_auth_ref,
            self.store.namespace,
            self.build,
        )
        try:
            await self.store.create(ResourceKind.JOB, job)
        except ResourceStoreError as e:
            logger.error(f"Failed to create build job {job_id}: {e}")
            await self.broadcast.publish(job_id, LogLevel.ERROR.value, f"Build job failed: {e}")
            raise DeployFailedError(job_id, str(e)) from e
        logger.info(f"Created build job {job_id} for {repo_url}")
        await self.broadcast.publish(job_id, LogLevel.INFO.value, f"Build job {job_id} created")
