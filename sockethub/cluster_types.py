"""Messages and pending-request records exchanged between cluster adapters."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .types import Ack, Packet, Room, SocketId
from .util import PacketOptions, Timer

ServerId = str
Offset = str

EMITTER_UID: ServerId = "emitter"
DEFAULT_TIMEOUT: float = 5.0  # seconds


class MessageType(enum.IntEnum):
    """Kinds of message sent between the servers of a cluster."""

    INITIAL_HEARTBEAT = 1
    HEARTBEAT = 2
    BROADCAST = 3
    SOCKETS_JOIN = 4
    SOCKETS_LEAVE = 5
    DISCONNECT_SOCKETS = 6
    FETCH_SOCKETS = 7
    FETCH_SOCKETS_RESPONSE = 8
    SERVER_SIDE_EMIT = 9
    SERVER_SIDE_EMIT_RESPONSE = 10
    BROADCAST_CLIENT_COUNT = 11
    BROADCAST_ACK = 12
    ADAPTER_CLOSE = 13


@dataclass
class ClusterMessage:
    """Envelope common to every cluster message."""

    type: MessageType
    uid: ServerId = ""
    nsp: str = ""
    data: Any = None


ClusterResponse = ClusterMessage


@dataclass
class BroadcastMessage:
    """Payload of a BROADCAST message."""

    opts: PacketOptions | None = None
    packet: Packet | None = None
    request_id: str | None = None


@dataclass
class SocketsJoinLeaveMessage:
    """Payload of SOCKETS_JOIN and SOCKETS_LEAVE messages."""

    opts: PacketOptions | None = None
    rooms: list[Room] = field(default_factory=list)


@dataclass
class DisconnectSocketsMessage:
    """Payload of a DISCONNECT_SOCKETS message."""

    opts: PacketOptions | None = None
    close: bool = False


@dataclass
class FetchSocketsMessage:
    """Payload of a FETCH_SOCKETS message."""

    opts: PacketOptions | None = None
    request_id: str = ""


@dataclass
class ServerSideEmitMessage:
    """Payload of a SERVER_SIDE_EMIT message; a request id asks for an answer."""

    request_id: str | None = None
    packet: list = field(default_factory=list)


@dataclass
class SocketResponse:
    """Description of a socket living on another server."""

    id: SocketId = ""
    handshake: Any = None
    rooms: list[Room] = field(default_factory=list)
    data: Any = None


@dataclass
class FetchSocketsResponse:
    """Answer to a FETCH_SOCKETS request."""

    request_id: str = ""
    sockets: list[SocketResponse] = field(default_factory=list)


@dataclass
class ServerSideEmitResponse:
    """Answer to a SERVER_SIDE_EMIT request."""

    request_id: str = ""
    packet: list = field(default_factory=list)


@dataclass
class BroadcastClientCount:
    """Number of clients a server reached for a broadcast with acknowledgement."""

    request_id: str = ""
    client_count: int = 0


@dataclass
class BroadcastAck:
    """An acknowledgement forwarded from a client on another server."""

    request_id: str = ""
    packet: list = field(default_factory=list)


@dataclass
class ClusterRequest:
    """A request waiting for a known number of responses."""

    type: MessageType
    resolve: Callable[[list], None]
    expected: int
    timeout: Optional[Timer] = None
    current: int = 0
    responses: list = field(default_factory=list)


@dataclass
class CustomClusterRequest:
    """A request waiting for a response from each of a set of servers."""

    type: MessageType
    resolve: Callable[[list], None]
    missing_uids: set[ServerId] = field(default_factory=set)
    timeout: Optional[Timer] = None
    responses: list = field(default_factory=list)


@dataclass
class ClusterAckRequest:
    """Callbacks of a broadcast with acknowledgement sent across the cluster."""

    client_count_callback: Callable[[int], None]
    ack: Ack