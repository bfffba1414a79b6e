"""
Convergence Module - Black Box Interface

Purpose: Make live cluster resources match desired-state documents
Interface: converge(), converge_resource_set()
Hidden: Replace-else-create protocol, apply ordering, outcome bookkeeping

One-shot and request-triggered; this is not a reconcile loop.
"""

from .engine import (
    ConvergenceAction,
    ConvergenceError,
    ConvergenceModule,
    ConvergenceReport,
    ResourceOutcome,
)

__all__ = [
    "ConvergenceModule",
    "ConvergenceAction",
    "ConvergenceError",
    "ConvergenceReport",
    "ResourceOutcome",
]
