"""Read-only view of a socket that may live on another server."""

from __future__ import annotations

from typing import Any

from .cluster_types import SocketResponse
from .types import Room, SocketId


class RemoteSocket:
    """Exposes the id, handshake, rooms and data of a socket."""

    def __init__(self, details: SocketResponse) -> None:
        self._id = details.id
        self._handshake = details.handshake
        self._rooms: set[Room] = set(details.rooms or ())
        self._data = details.data

    @property
    def id(self) -> SocketId:
        return self._id

    @property
    def handshake(self) -> Any:
        return self._handshake

    @property
    def rooms(self) -> set[Room]:
        return self._rooms

    @property
    def data(self) -> Any:
        return self._data

    def __repr__(self) -> str:
        return f"RemoteSocket(id={self._id!r}, rooms={sorted(self._rooms)!r})"