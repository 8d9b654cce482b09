"""Options for cluster adapters."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ClusterAdapterOptions:
    """Heartbeat settings of a cluster adapter.

    ``heartbeat_interval`` is the delay between two heartbeats, in seconds
    (adapters default it to 5). ``heartbeat_timeout`` is the number of
    milliseconds without a heartbeat before a node is considered down
    (adapters default it to 10 000). ``None`` means "not set".
    """

    heartbeat_interval: float | None = None
    heartbeat_timeout: int | None = None

    def assign(self, other: ClusterAdapterOptions | None) -> ClusterAdapterOptions:
        """Copy every value that is set on ``other`` into these options."""
        if other is None:
            return self
        if other.heartbeat_interval is not None:
            self.heartbeat_interval = other.heartbeat_interval
        if other.heartbeat_timeout is not None:
            self.heartbeat_timeout = other.heartbeat_timeout
        return self