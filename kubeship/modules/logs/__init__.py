"""
Logs Module - Black Box Interface

Purpose: Stream a build job's pod output to a requester
Interface: open_stream(), find_pod()
Hidden: Pod lookup by job label, follow-mode log reads
"""

from .logs import LogStreamModule, PodNotFoundError

__all__ = ["LogStreamModule", "PodNotFoundError"]
