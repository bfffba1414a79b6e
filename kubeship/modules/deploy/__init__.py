"""
Deploy Module - Black Box Interface

Purpose: Turn a deploy request into converged cluster resources
Interface: deploy(), app_spec_for()
Hidden: Default resolution, build job creation, event publishing
"""

from .deploy import DeployFailedError, DeployModule, DeployResult

__all__ = ["DeployModule", "DeployResult", "DeployFailedError"]
