"""Namespaces: separate communication channels sharing one connection."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from .broadcast_operator import BroadcastOperator
from .emitter import EventEmitter, Listener
from .types import Ack, ExtendedError, Room, SocketId

NAMESPACE_RESERVED_EVENTS = frozenset({"connect", "connection", "new_namespace"})

Middleware = Callable[[Any, Callable[[Optional[ExtendedError]], None]], None]


class Namespace:
    """A channel with its own event handlers, rooms and middlewares.

    The server must expose ``encoder`` and ``adapter``, the latter being a
    builder whose ``new(nsp)`` returns the adapter for this namespace.
    """

    def __init__(self, server: Any, name: str) -> None:
        self.server = server
        self.name = name
        self.sockets: dict[SocketId, Any] = {}
        self.adapter: Any = None
        self._events = EventEmitter()
        self._fns: list[Middleware] = []
        self._cleanup: Callable[[], Any] | None = None
        self._ids = 0
        self._ids_lock = threading.Lock()
        self.init_adapter()

    # event handling for listeners registered on the namespace

    def on(self, event: str, *args: Listener) -> Namespace:
        """Register listeners for an event of this namespace."""
        self._events.on(event, *args)
        return self

    def once(self, event: str, *args: Listener) -> Namespace:
        """Register listeners called at most once."""
        self._events.once(event, *args)
        return self

    def remove_listener(self, event: str, listener: Listener) -> Namespace:
        """Remove a listener of an event."""
        self._events.remove_listener(event, listener)
        return self

    def emit_reserved(self, event: str, *args: Any) -> bool:
        """Call the local listeners of a reserved event."""
        return self._events.emit_reserved(event, *args)

    def emit_untyped(self, event: str, *args: Any) -> bool:
        """Call the local listeners of an arbitrary event."""
        return self._events.emit_untyped(event, *args)

    def listeners(self, event: str) -> list[Listener]:
        """Return the local listeners of an event."""
        return self._events.listeners(event)

    @property
    def middlewares(self) -> list[Middleware]:
        """The registered middlewares, in order."""
        return list(self._fns)

    def init_adapter(self) -> None:
        """Create the adapter of this namespace from the server's builder."""
        self.adapter = self.server.adapter.new(self)

    def next_id(self) -> int:
        """Return the next acknowledgement id (starting at 1)."""
        with self._ids_lock:
            self._ids += 1
            return self._ids

    def use(self, fn: Middleware) -> Namespace:
        """Register a middleware run for every incoming socket."""
        self._fns.append(fn)
        return self

    def run(self, socket: Any, fn: Callable[[Optional[ExtendedError]], None]) -> None:
        """Run the middlewares for a socket, then ``fn(error_or_None)``."""
        fns = list(self._fns)
        if not fns:
            fn(None)
            return

        def step(position: int) -> None:
            def next_(err: ExtendedError | None = None) -> None:
                if err is not None:
                    fn(err)
                elif position >= len(fns) - 1:
                    fn(None)
                else:
                    step(position + 1)

            fns[position](socket, next_)

        step(0)

    def cleanup(self, callback: Callable[[], Any] | None) -> None:
        """Set the callback run whenever a socket is removed."""
        self._cleanup = callback

    def remove(self, socket: Any) -> None:
        """Forget a socket; called by the socket itself."""
        self.sockets.pop(socket.id, None)
        if self._cleanup is not None:
            self._cleanup()

    def _operator(self) -> BroadcastOperator:
        return BroadcastOperator(self.adapter)

    def to(self, *args: Room) -> BroadcastOperator:
        """Target the given rooms."""
        return self._operator().to(*args)

    def in_(self, *args: Room) -> BroadcastOperator:
        """Alias of :meth:`to`."""
        return self._operator().in_(*args)

    def except_(self, *args: Room) -> BroadcastOperator:
        """Exclude the sockets of the given rooms."""
        return self._operator().except_(*args)

    def emit(self, event: str, *args: Any) -> None:
        """Emit an event to every connected client of this namespace."""
        self._operator().emit(event, *args)

    def send(self, *args: Any) -> Namespace:
        """Emit a ``message`` event to every client."""
        self.emit("message", *args)
        return self

    def write(self, *args: Any) -> Namespace:
        """Alias of :meth:`send`."""
        self.emit("message", *args)
        return self

    def server_side_emit(self, event: str, *args: Any) -> None:
        """Send an event to the other servers of the cluster.

        A callable last argument receives one response per other server.
        """
        if event in NAMESPACE_RESERVED_EVENTS:
            raise ValueError(f'"{event}" is a reserved event name')
        self.adapter.server_side_emit([event, *args])

    def server_side_emit_with_ack(self, event: str, *args: Any) -> Callable[[Ack], None]:
        """Return a function that emits to other servers with the given acknowledgement."""

        def send(ack: Ack) -> None:
            self.server_side_emit(event, *args, ack)

        return send

    def on_server_side_emit(self, args: list) -> None:
        """Dispatch an event received from another server to local listeners."""
        if not args or not isinstance(args[0], str):
            return
        self.emit_untyped(args[0], *args[1:])

    def all_sockets(self) -> set[SocketId]:
        """Return the ids of every socket of this namespace."""
        return self._operator().all_sockets()

    def compress(self, compress: bool) -> BroadcastOperator:
        """Set the compress flag."""
        return self._operator().compress(compress)

    def volatile(self) -> BroadcastOperator:
        """Allow the event to be dropped when a client is not ready."""
        return self._operator().volatile()

    def local(self) -> BroadcastOperator:
        """Only broadcast to the sockets of this server."""
        return self._operator().local()

    def timeout(self, timeout: float) -> BroadcastOperator:
        """Set the delay, in seconds, to wait for acknowledgements."""
        return self._operator().timeout(timeout)

    def fetch_sockets(self, callback: Callable[[list, BaseException | None], None]) -> None:
        """Pass every matching socket to ``callback(sockets, error)``."""
        self._operator().fetch_sockets(callback)

    def sockets_join(self, *args: Room) -> None:
        """Make every socket join the given rooms."""
        self._operator().sockets_join(*args)

    def sockets_leave(self, *args: Room) -> None:
        """Make every socket leave the given rooms."""
        self._operator().sockets_leave(*args)

    def disconnect_sockets(self, close: bool) -> None:
        """Disconnect every socket, closing the connection if ``close``."""
        self._operator().disconnect_sockets(close)