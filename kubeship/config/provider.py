"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class RoutingConfig:
    """Ingress routing configuration."""
    base_domain: str
    ingress_class: str
    tls_enabled: bool
    cluster_issuer: str

    def default_domain(self, app_name: str) -> str:
        """Domain used when a deploy request does not name one."""
        return f"{app_name}.{self.base_domain}"

    @property
    def scheme(self) -> str:
        return "https" if self.tls_enabled else "http"


@dataclass
class BuildConfig:
    """In-cluster image build configuration."""
    registry: str
    registry_auth: str
    buildkit_addr: str
    git_image: str
    buildkit_image: str


@dataclass
class ClusterConfig:
    """Cluster access configuration."""
    kubeconfig_path: Optional[str]
    context: Optional[str]
    image_pull_secret: str

    @property
    def in_cluster(self) -> bool:
        """Use the service account token when no kubeconfig is given."""
        return not self.kubeconfig_path


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_routing_config(self) -> RoutingConfig:
        """Get ingress routing configuration."""
        ...

    def get_build_config(self) -> BuildConfig:
        """Get image build configuration."""
        ...

    def get_cluster_config(self) -> ClusterConfig:
        """Get cluster access configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_routing_config(self) -> RoutingConfig:
        """Get routing configuration from environment variables."""
        return RoutingConfig(
            base_domain=os.getenv("BASE_DOMAIN", "0rca.live"),
            ingress_class=os.getenv("INGRESS_CLASS", "nginx"),
            tls_enabled=os.getenv("INGRESS_TLS", "true").lower() == "true",
            cluster_issuer=os.getenv("CLUSTER_ISSUER", "letsencrypt-prod"),
        )

    def get_build_config(self) -> BuildConfig:
        """Get build configuration from environment variables."""
        return BuildConfig(
            registry=os.getenv("BUILD_REGISTRY", "registry.digitalocean.com/orcanet"),
            registry_auth=os.getenv("BUILD_REGISTRY_AUTH", "regcred"),
            buildkit_addr=os.getenv("BUILDKIT_ADDR", "tcp://buildkitd:1234"),
            git_image=os.getenv("BUILD_GIT_IMAGE", "alpine/git:latest"),
            buildkit_image=os.getenv("BUILD_BUILDKIT_IMAGE", "moby/buildkit:latest"),
        )

    def get_cluster_config(self) -> ClusterConfig:
        """Get cluster configuration from environment variables."""
        return ClusterConfig(
            kubeconfig_path=os.getenv("KUBECONFIG_PATH") or None,
            context=os.getenv("KUBE_CONTEXT") or None,
            image_pull_secret=os.getenv("DEFAULT_REGISTRY_AUTH", "ghcr-secret"),
        )
