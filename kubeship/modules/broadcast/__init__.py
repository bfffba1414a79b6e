"""
Broadcast Module - Black Box Interface

Purpose: Real-time delivery of job log events to connected observers
Interface: register(), unregister(), subscribe(), unsubscribe(), publish()
Hidden: Subscription registry, transport open/closed checks

In-memory only: events published before a client subscribes are not replayed.
"""

from .broadcast import BroadcastModule, Connection, Subscription, WebSocketConnection

__all__ = ["BroadcastModule", "Connection", "Subscription", "WebSocketConnection"]
