"""The in-memory adapter that keeps track of rooms and delivers broadcasts."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any, Callable

from .emitter import EventEmitter
from .types import (
    Ack,
    BroadcastFlags,
    BroadcastOptions,
    Packet,
    PrivateSessionId,
    Room,
    Session,
    SessionToPersist,
    SocketId,
    WriteOptions,
)

SocketCallback = Callable[[Any], None]
FetchCallback = Callable[[list, "BaseException | None"], None]


class Adapter(EventEmitter):
    """Stores which sockets are in which rooms of a namespace.

    Emits ``create-room``, ``join-room``, ``leave-room`` and ``delete-room``
    as rooms and memberships change, and ``persist-session`` and
    ``restore-session`` when the namespace asks for session handling.
    """

    def __init__(self, nsp: Any) -> None:
        super().__init__()
        self.nsp = nsp
        self.rooms: dict[Room, set[SocketId]] = {}
        self.sids: dict[SocketId, set[Room]] = {}
        self.closed = False
        self._encoder = nsp.server.encoder
        self._rooms_lock = threading.RLock()

    def init(self) -> None:
        """Mark the adapter as attached and open."""
        self.closed = False

    def close(self) -> None:
        """Mark the adapter as shut down."""
        self.closed = True

    def server_count(self) -> int:
        """Return the number of servers in the cluster."""
        return 1

    def add_all(self, sid: SocketId, rooms: Iterable[Room]) -> None:
        """Add a socket to each of the given rooms."""
        with self._rooms_lock:
            socket_rooms = self.sids.setdefault(sid, set())
            for room in rooms:
                socket_rooms.add(room)
                ids = self.rooms.get(room)
                if ids is None:
                    ids = self.rooms[room] = set()
                    self.emit("create-room", room)
                if sid not in ids:
                    ids.add(sid)
                    self.emit("join-room", room, sid)

    def delete(self, sid: SocketId, room: Room) -> None:
        """Remove a socket from a room."""
        with self._rooms_lock:
            socket_rooms = self.sids.get(sid)
            if socket_rooms is not None:
                socket_rooms.discard(room)
            self._del(room, sid)

    def _del(self, room: Room, sid: SocketId) -> None:
        ids = self.rooms.get(room)
        if ids is None:
            return
        if sid in ids:
            ids.remove(sid)
            self.emit("leave-room", room, sid)
        if not ids and self.rooms.pop(room, None) is not None:
            self.emit("delete-room", room)

    def del_all(self, sid: SocketId) -> None:
        """Remove a socket from every room it has joined."""
        with self._rooms_lock:
            socket_rooms = self.sids.get(sid)
            if socket_rooms is None:
                return
            for room in list(socket_rooms):
                self._del(room, sid)
            self.sids.pop(sid, None)

    @staticmethod
    def _write_options(opts: BroadcastOptions | None) -> WriteOptions:
        flags = opts.flags if opts is not None and opts.flags is not None else BroadcastFlags()
        return WriteOptions(
            pre_encoded=True,
            volatile=flags.volatile,
            compress=flags.compress,
        )

    def _encode(self, packet: Packet, packet_opts: WriteOptions) -> list:
        encoded = list(self._encoder.encode(packet))
        if len(encoded) == 1 and isinstance(encoded[0], str):
            # "4" is the "message" packet type of the transport protocol
            packet_opts.ws_pre_encoded_frame = "4" + encoded[0]
        return encoded

    @staticmethod
    def _notify(socket: Any, packet: Packet) -> None:
        notify = getattr(socket, "notify_outgoing_listeners", None)
        if notify is not None:
            notify(packet)

    def broadcast(self, packet: Packet, opts: BroadcastOptions | None) -> None:
        """Send a packet to every socket matched by the options."""
        packet_opts = self._write_options(opts)
        packet.nsp = self.nsp.name
        encoded = self._encode(packet, packet_opts)

        def deliver(socket: Any) -> None:
            self._notify(socket, packet)
            socket.client.write_to_engine(encoded, packet_opts)

        self._apply(opts, deliver)

    def broadcast_with_ack(
        self,
        packet: Packet,
        opts: BroadcastOptions | None,
        client_count_callback: Callable[[int], None],
        ack: Ack,
    ) -> None:
        """Send a packet expecting an acknowledgement from each matched socket.

        ``client_count_callback`` receives the number of sockets reached.
        """
        packet_opts = self._write_options(opts)
        packet.nsp = self.nsp.name
        # the id counter is shared by the namespace, so one id serves every socket
        packet.id = self.nsp.next_id()
        encoded = self._encode(packet, packet_opts)
        client_count = 0

        def deliver(socket: Any) -> None:
            nonlocal client_count
            client_count += 1
            socket.acks[packet.id] = ack
            self._notify(socket, packet)
            socket.client.write_to_engine(encoded, packet_opts)

        self._apply(opts, deliver)
        client_count_callback(client_count)

    def sockets(self, rooms: Iterable[Room] | None) -> set[SocketId]:
        """Return the ids of the sockets in the given rooms (all if empty)."""
        found: set[SocketId] = set()
        self._apply(
            BroadcastOptions(rooms=set(rooms or ())),
            lambda socket: found.add(socket.id),
        )
        return found

    def socket_rooms(self, sid: SocketId) -> set[Room] | None:
        """Return the rooms a socket has joined, or None for an unknown socket."""
        return self.sids.get(sid)

    def fetch_sockets(self, opts: BroadcastOptions | None, callback: FetchCallback) -> None:
        """Pass the matching sockets to ``callback(sockets, error)``."""
        found: list = []
        self._apply(opts, found.append)
        callback(found, None)

    def add_sockets(self, opts: BroadcastOptions | None, rooms: Iterable[Room]) -> None:
        """Make the matching sockets join the given rooms."""
        rooms = list(rooms)
        self._apply(opts, lambda socket: socket.join(*rooms))

    def del_sockets(self, opts: BroadcastOptions | None, rooms: Iterable[Room]) -> None:
        """Make the matching sockets leave the given rooms."""
        rooms = list(rooms)

        def leave(socket: Any) -> None:
            for room in rooms:
                socket.leave(room)

        self._apply(opts, leave)

    def disconnect_sockets(self, opts: BroadcastOptions | None, close: bool) -> None:
        """Disconnect the matching sockets, closing the connection if ``close``."""
        self._apply(opts, lambda socket: socket.disconnect(close))

    def _apply(self, opts: BroadcastOptions | None, callback: SocketCallback) -> None:
        if opts is None:
            opts = BroadcastOptions()
        except_sids = self._compute_except_sids(opts.except_rooms)
        known = self.nsp.sockets

        if opts.rooms:
            seen: set[SocketId] = set()
            for room in list(opts.rooms):
                with self._rooms_lock:
                    ids = list(self.rooms.get(room, ()))
                for sid in ids:
                    if sid in seen or sid in except_sids:
                        continue
                    socket = known.get(sid)
                    if socket is not None:
                        callback(socket)
                        seen.add(sid)
        else:
            with self._rooms_lock:
                ids = list(self.sids)
            for sid in ids:
                if sid in except_sids:
                    continue
                socket = known.get(sid)
                if socket is not None:
                    callback(socket)

    def _compute_except_sids(self, except_rooms: Iterable[Room] | None) -> set[SocketId]:
        except_sids: set[SocketId] = set()
        with self._rooms_lock:
            for room in except_rooms or ():
                except_sids.update(self.rooms.get(room, ()))
        return except_sids

    def server_side_emit(self, packet: list) -> None:
        """Send a packet to the other servers; a single server cannot."""
        if not packet:
            raise ValueError("packet cannot be empty")
        raise RuntimeError(
            f"this adapter does not support the server_side_emit() functionality "
            f"(event {packet[0]!r})"
        )

    def persist_session(self, session: SessionToPersist) -> None:
        """Announce a session to persist; this adapter stores none itself."""
        self.emit("persist-session", session)

    def restore_session(self, pid: PrivateSessionId, offset: str) -> Session | None:
        """Announce a restore request; this adapter has no session to return."""
        self.emit("restore-session", pid, offset)
        return None


class AdapterBuilder:
    """Creates an in-memory adapter for a namespace."""

    def new(self, nsp: Any) -> Adapter:
        return Adapter(nsp)