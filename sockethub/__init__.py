"""Namespaces, rooms, broadcasting with acknowledgements and cluster message types for real-time socket servers."""

__version__ = "0.1.0"

__all__ = [
    "adapter",
    "broadcast_operator",
    "cluster_types",
    "emitter",
    "namespace",
    "options",
    "remote_socket",
    "types",
    "util",
]