"""Core data types shared by adapters, namespaces and broadcast operators."""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

Room = str
SocketId = str
PrivateSessionId = str

# An acknowledgement callback: receives the response arguments and an error (or None).
Ack = Callable[[Optional[list], Optional[BaseException]], None]


class PacketType(enum.IntEnum):
    """Socket.IO packet types."""

    CONNECT = 0
    DISCONNECT = 1
    EVENT = 2
    ACK = 3
    CONNECT_ERROR = 4
    BINARY_EVENT = 5
    BINARY_ACK = 6


@dataclass
class Packet:
    """A Socket.IO packet."""

    type: PacketType
    nsp: str = "/"
    data: Any = None
    id: int | None = None


@dataclass
class WriteOptions:
    """Options used when writing a packet to the transport."""

    compress: bool = False
    volatile: bool = False
    pre_encoded: bool = False
    ws_pre_encoded_frame: Any = None


@dataclass
class BroadcastFlags(WriteOptions):
    """Flags that modify how a broadcast is delivered."""

    local: bool = False
    broadcast: bool = False
    binary: bool = False
    timeout: float | None = None  # seconds
    expect_single_response: bool = False


@dataclass
class BroadcastOptions:
    """Selection of target sockets and flags for a broadcast."""

    rooms: set[Room] = field(default_factory=set)
    except_rooms: set[Room] = field(default_factory=set)
    flags: BroadcastFlags | None = None


@dataclass
class SessionToPersist:
    """Client session state saved for connection state recovery."""

    sid: SocketId = ""
    pid: PrivateSessionId = ""
    rooms: set[Room] = field(default_factory=set)
    data: Any = None


@dataclass
class Session(SessionToPersist):
    """A restored session together with the packets the client missed."""

    missed_packets: list = field(default_factory=list)


@dataclass
class PersistedPacket:
    """A broadcast packet kept for later replay."""

    id: str
    emitted_at: int
    data: Any = None
    opts: BroadcastOptions | None = None


@dataclass
class SessionWithTimestamp(SessionToPersist):
    """A persisted session with the time of disconnection."""

    disconnected_at: int = 0


class ExtendedError(Exception):
    """An error carrying an extra payload, used by namespace middlewares."""

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data

    def __str__(self) -> str:
        return self.message


def _last_string(value: Any) -> str | None:
    if isinstance(value, str):
        return value or None
    if isinstance(value, Sequence) and value:
        last = value[-1]
        if isinstance(last, str) and last:
            return last
    return None


@dataclass
class SessionData:
    """Recovery data sent by a reconnecting client."""

    pid: Any = None
    offset: Any = None

    def get_pid(self) -> str | None:
        """Return the private session id, or None when absent or empty."""
        return _last_string(self.pid)

    def get_offset(self) -> str | None:
        """Return the offset of the last received packet, or None."""
        return _last_string(self.offset)


def parse_session_data(auth: Any) -> SessionData | None:
    """Extract session recovery data from an auth payload, if it is a mapping."""
    if isinstance(auth, Mapping):
        return SessionData(pid=auth.get("pid"), offset=auth.get("offset"))
    return None