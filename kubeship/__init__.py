"""
Kubeship - One-shot Application Deployment Shim

Turns a "deploy this image as this app" request into a Deployment,
a Service and an Ingress on the target cluster.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- manifests: Desired-state document builders
- store: Cluster resource store abstraction
- convergence: Create-or-replace convergence engine
- jobs: Job identity and status resolution
- broadcast: Real-time log/event fan-out
- logs: Pod log streaming
- deploy: Deploy request orchestration
- api: REST/WebSocket API models
"""

__version__ = "1.0.0"
