"""
Manifests Module - Black Box Interface

Purpose: Build desired-state documents for a deployed app
Interface: build_resource_set(), build_deployment(), build_service(),
           build_ingress(), build_image_job()
Hidden: Document layout, label conventions, ingress annotations

Pure construction only - no cluster access.
"""

from .builders import (
    SERVICE_PORT,
    AppSpec,
    DesiredResourceSet,
    build_deployment,
    build_image_job,
    build_ingress,
    build_resource_set,
    build_service,
)

__all__ = [
    "AppSpec",
    "DesiredResourceSet",
    "SERVICE_PORT",
    "build_deployment",
    "build_service",
    "build_ingress",
    "build_resource_set",
    "build_image_job",
]
