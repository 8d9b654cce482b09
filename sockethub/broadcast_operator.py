"""Chainable selection of target sockets for emitting and bulk operations."""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable
from typing import Any, Callable

from .cluster_types import SocketResponse
from .remote_socket import RemoteSocket
from .types import Ack, BroadcastFlags, BroadcastOptions, Packet, PacketType, Room, SocketId
from .util import clear_timer, set_timeout

SOCKET_RESERVED_EVENTS = frozenset(
    {
        "connect",
        "connect_error",
        "disconnect",
        "disconnecting",
        "newListener",
        "removeListener",
    }
)


class BroadcastOperator:
    """Targets a set of rooms (minus excluded rooms) with the given flags.

    Every modifier returns a new operator and leaves this one untouched.
    """

    def __init__(
        self,
        adapter: Any,
        rooms: Iterable[Room] | None = None,
        except_rooms: Iterable[Room] | None = None,
        flags: BroadcastFlags | None = None,
    ) -> None:
        self.adapter = adapter
        self.rooms: set[Room] = set(rooms) if rooms is not None else set()
        self.except_rooms: set[Room] = set(except_rooms) if except_rooms is not None else set()
        self.flags: BroadcastFlags = flags if flags is not None else BroadcastFlags()

    def _options(self) -> BroadcastOptions:
        return BroadcastOptions(rooms=self.rooms, except_rooms=self.except_rooms, flags=self.flags)

    def _with_flags(self, **changes: Any) -> BroadcastOperator:
        flags = dataclasses.replace(self.flags, **changes)
        return BroadcastOperator(self.adapter, self.rooms, self.except_rooms, flags)

    def to(self, *args: Room) -> BroadcastOperator:
        """Target the given rooms in addition to those already targeted."""
        return BroadcastOperator(self.adapter, self.rooms | set(args), self.except_rooms, self.flags)

    def in_(self, *args: Room) -> BroadcastOperator:
        """Alias of :meth:`to`."""
        return self.to(*args)

    def except_(self, *args: Room) -> BroadcastOperator:
        """Exclude the sockets of the given rooms."""
        return BroadcastOperator(self.adapter, self.rooms, self.except_rooms | set(args), self.flags)

    def compress(self, compress: bool) -> BroadcastOperator:
        """Set the compress flag."""
        return self._with_flags(compress=compress)

    def volatile(self) -> BroadcastOperator:
        """Allow the event to be dropped when a client is not ready."""
        return self._with_flags(volatile=True)

    def local(self) -> BroadcastOperator:
        """Only broadcast to the sockets of this server."""
        return self._with_flags(local=True)

    def timeout(self, timeout: float) -> BroadcastOperator:
        """Set the delay, in seconds, to wait for acknowledgements."""
        return self._with_flags(timeout=timeout)

    def emit(self, event: str, *args: Any) -> None:
        """Emit an event to the targeted sockets.

        A callable last argument is an acknowledgement callback: it receives
        the list of client responses and an error (``TimeoutError`` when not
        every client answered in time).
        """
        if event in SOCKET_RESERVED_EVENTS:
            raise ValueError(f'"{event}" is a reserved event name')

        data = [event, *args]
        packet = Packet(type=PacketType.EVENT, data=data)

        if not callable(data[-1]):
            self.adapter.broadcast(packet, self._options())
            return

        ack: Ack = data[-1]
        packet.data = data[:-1]

        lock = threading.RLock()
        responses: list = []
        finished = False
        expected_server_count = -1
        actual_server_count = 0
        expected_client_count = 0
        single = self.flags.expect_single_response

        def on_timeout() -> None:
            nonlocal finished
            with lock:
                if finished:
                    return
                finished = True
                result = None if single else list(responses)
            ack(result, TimeoutError("operation has timed out"))

        timer = set_timeout(on_timeout, self.flags.timeout if self.flags.timeout is not None else 0)

        def check_completeness() -> None:
            nonlocal finished
            with lock:
                if (
                    finished
                    or expected_server_count != actual_server_count
                    or len(responses) != expected_client_count
                ):
                    return
                finished = True
                if single:
                    result = responses[0] if responses else None
                else:
                    result = list(responses)
            clear_timer(timer)
            ack(result, None)

        def on_client_count(client_count: int) -> None:
            # each server of the cluster reports how many clients it reached
            nonlocal expected_client_count, actual_server_count
            with lock:
                expected_client_count += client_count
                actual_server_count += 1
            check_completeness()

        def on_client_response(client_response: list | None, _error: BaseException | None) -> None:
            with lock:
                responses.extend(client_response or ())
            check_completeness()

        self.adapter.broadcast_with_ack(packet, self._options(), on_client_count, on_client_response)
        with lock:
            expected_server_count = self.adapter.server_count()
        check_completeness()

    def emit_with_ack(self, event: str, *args: Any) -> Callable[[Ack], None]:
        """Return a function that emits the event with the given acknowledgement."""

        def send(ack: Ack) -> None:
            self.emit(event, *args, ack)

        return send

    def all_sockets(self) -> set[SocketId]:
        """Return the ids of the sockets in the targeted rooms."""
        if self.adapter is None:
            raise RuntimeError(
                "no adapter for this namespace, are you trying to get the list of "
                "clients of a dynamic namespace?"
            )
        return self.adapter.sockets(self.rooms)

    def _to_remote(self, socket: Any) -> RemoteSocket:
        rooms = getattr(socket, "rooms", None)
        if rooms is None:
            rooms = self.adapter.socket_rooms(socket.id) or ()
        return RemoteSocket(
            SocketResponse(
                id=socket.id,
                handshake=getattr(socket, "handshake", None),
                rooms=list(rooms),
                data=getattr(socket, "data", None),
            )
        )

    def fetch_sockets(self, callback: Callable[[list, BaseException | None], None]) -> None:
        """Pass the matching sockets, as ``RemoteSocket`` views, to ``callback(sockets, error)``."""

        def done(sockets: list, error: BaseException | None) -> None:
            remote = [s if isinstance(s, RemoteSocket) else self._to_remote(s) for s in sockets or ()]
            callback(remote, error)

        self.adapter.fetch_sockets(self._options(), done)

    def sockets_join(self, *args: Room) -> None:
        """Make the matching sockets join the given rooms."""
        self.adapter.add_sockets(self._options(), list(args))

    def sockets_leave(self, *args: Room) -> None:
        """Make the matching sockets leave the given rooms."""
        self.adapter.del_sockets(self._options(), list(args))

    def disconnect_sockets(self, close: bool) -> None:
        """Disconnect the matching sockets, closing the connection if ``close``."""
        self.adapter.disconnect_sockets(self._options(), close)