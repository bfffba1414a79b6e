"""
Desired-state document builders.

Pure functions: given an AppSpec they return the Deployment, Service and
Ingress documents (plus the optional image build Job) as plain dicts ready
to hand to the resource store. Input is validated upstream; nothing here
raises.
"""

from dataclasses import dataclass
from typing import Any, Dict

from kubeship.config.provider import BuildConfig, RoutingConfig

SERVICE_PORT = 80


@dataclass(frozen=True)
class AppSpec:
    """Validated, defaulted form of a deploy request."""
    app_name: str
    image_reference: str
    port: int
    registry_auth_ref: str
    domain: str

    @property
    def labels(self) -> Dict[str, str]:
        return {"app": self.app_name}

    @property
    def ingress_name(self) -> str:
        return f"{self.app_name}-ingress"

    @property
    def tls_secret_name(self) -> str:
        return f"{self.app_name}-tls"


@dataclass(frozen=True)
class DesiredResourceSet:
    """The three documents that make up one deployed app, in apply order."""
    deployment: Dict[str, Any]
    service: Dict[str, Any]
    ingress: Dict[str, Any]


def build_deployment(spec: AppSpec, namespace: str) -> Dict[str, Any]:
    """Single-replica Deployment running the app's image."""
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": spec.app_name, "namespace": namespace},
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": dict(spec.labels)},
            "template": {
                "metadata": {"labels": dict(spec.labels)},
                "spec": {
                    "containers": [
                        {
                            "name": spec.app_name,
                            "image": spec.image_reference,
                            "ports": [{"containerPort": spec.port}],
                        }
                    ],
                    "imagePullSecrets": [{"name": spec.registry_auth_ref}],
                },
            },
        },
    }


def build_service(spec: AppSpec, namespace: str) -> Dict[str, Any]:
    """ClusterIP Service exposing port 80 in front of the container port."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": spec.app_name, "namespace": namespace},
        "spec": {
            "selector": dict(spec.labels),
            "ports": [{"port": SERVICE_PORT, "targetPort": spec.port}],
            "type": "ClusterIP",
        },
    }


def build_ingress(spec: AppSpec, namespace: str, routing: RoutingConfig) -> Dict[str, Any]:
    """
    Ingress routing the app's domain to its Service.

    With TLS enabled the host gets a cert-manager issued certificate stored
    in `{app_name}-tls` and plain HTTP is redirected.
    """
    annotations = {"nginx.ingress.kubernetes.io/rewrite-target": "/"}
    ingress_spec: Dict[str, Any] = {"ingressClassName": routing.ingress_class}

    if routing.tls_enabled:
        annotations["cert-manager.io/cluster-issuer"] = routing.cluster_issuer
        annotations["nginx.ingress.kubernetes.io/ssl-redirect"] = "true"
        ingress_spec["tls"] = [{"hosts": [spec.domain], "secretName": spec.tls_secret_name}]

    ingress_spec["rules"] = [
        {
            "host": spec.domain,
            "http": {
                "paths": [
                    {
                        "path": "/",
                        "pathType": "Prefix",
                        "backend": {
                            "service": {
                                "name": spec.app_name,
                                "port": {"number": SERVICE_PORT},
                            }
                        },
                    }
                ]
            },
        }
    ]

    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {
            "name": spec.ingress_name,
            "namespace": namespace,
            "annotations": annotations,
        },
        "spec": ingress_spec,
    }


def build_resource_set(spec: AppSpec, namespace: str, routing: RoutingConfig) -> DesiredResourceSet:
    return DesiredResourceSet(
        deployment=build_deployment(spec, namespace),
        service=build_service(spec, namespace),
        ingress=build_ingress(spec, namespace, routing),
    )


def build_image_job(
    job_id: str,
    repo_url: str,
    image_reference: str,
    registry_auth_ref: str,
    namespace: str,
    build: BuildConfig,
) -> Dict[str, Any]:
    """
    One-shot BuildKit Job that clones a repository and pushes its image.

    The registry credential secret doubles as the Docker config for the
    push. Pods created by the Job carry the `job-name={job_id}` label,
    which is how log streaming finds them.
    """
    workspace_mount = {"name": "workspace", "mountPath": "/workspace"}
    return {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": {"name": job_id, "namespace": namespace},
        "spec": {
            "template": {
                "spec": {
                    "restartPolicy": "Never",
                    "initContainers": [
                        {
                            "name": "git-clone",
                            "image": build.git_image,
                            "command": ["git", "clone", repo_url, "/workspace"],
                            "volumeMounts": [dict(workspace_mount)],
                        }
                    ],
                    "containers": [
                        {
                            "name": "buildctl",
                            "image": build.buildkit_image,
                            "command": ["buildctl"],
                            "args": [
                                "--addr", build.buildkit_addr,
                                "build",
                                "--frontend", "dockerfile.v0",
                                "--local", "context=/workspace",
                                "--local", "dockerfile=/workspace",
                                "--output", f"type=image,name={image_reference},push=true",
                            ],
                            "volumeMounts": [
                                dict(workspace_mount),
                                {"name": "docker-config", "mountPath": "/root/.docker"},
                            ],
                        }
                    ],
                    "volumes": [
                        {"name": "workspace", "emptyDir": {}},
                        {
                            "name": "docker-config",
                            "secret": {
                                "secretName": registry_auth_ref,
                                "items": [{"key": ".dockerconfigjson", "path": "config.json"}],
                            },
                        },
                    ],
                }
            }
        },
    }
