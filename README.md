# sockethub

Server-side building blocks for real-time socket applications: namespaces
with middlewares, room membership, chainable broadcasting with
acknowledgements, and the data types that servers of a cluster exchange.

The package has no dependencies beyond the standard library.

## Installation

```
pip install sockethub
```

## Modules

- `sockethub.namespace` — `Namespace(server, name)`: a channel with its own
  listeners (`on`, `once`, `remove_listener`, `listeners`), middlewares
  (`use`, `run`), socket registry (`sockets`, `remove`, `cleanup`) and
  acknowledgement ids (`next_id`, starting at 1). It creates its adapter by
  calling `server.adapter.new(namespace)`. Broadcasting helpers: `to`, `in_`,
  `except_`, `emit`, `send`, `write`, `compress`, `volatile`, `local`,
  `timeout`, `all_sockets`, `fetch_sockets`, `sockets_join`, `sockets_leave`,
  `disconnect_sockets`, `server_side_emit`, `server_side_emit_with_ack` and
  `on_server_side_emit` (dispatches an event received from another server to
  the local listeners). `server_side_emit` raises `ValueError` for the
  reserved names `connect`, `connection` and `new_namespace`.
- `sockethub.broadcast_operator` — `BroadcastOperator`: an immutable,
  chainable target description; every modifier returns a new operator.

  ```python
  nsp.to("room-101").except_("room-102").volatile().emit("foo", "bar")
  nsp.timeout(1.0).emit("ping", lambda responses, err: print(responses, err))
  ```

  When the last argument of `emit` is callable, it receives the list of
  client responses and `None` once every client of every server has
  answered, or the responses so far and a `TimeoutError` when the timeout
  (in seconds) runs out. Reserved socket event names raise `ValueError`.
  `emit_with_ack(event, *args)` returns a function taking the callback.
- `sockethub.adapter` — `Adapter(nsp)` keeps `rooms` (room → socket ids) and
  `sids` (socket id → rooms), emits `create-room`, `join-room`,
  `leave-room` and `delete-room`, and delivers packets to local sockets
  (`broadcast`, `broadcast_with_ack`, `fetch_sockets`, `add_sockets`,
  `del_sockets`, `disconnect_sockets`). `server_count()` is 1, and
  `server_side_emit` raises `RuntimeError` since a lone server has no peers.
  `AdapterBuilder().new(nsp)` creates one.
- `sockethub.emitter` — `EventEmitter`, a thread-safe listener registry.
- `sockethub.types` — `Packet`, `PacketType`, `WriteOptions`,
  `BroadcastFlags`, `BroadcastOptions`, `SessionToPersist`, `Session`,
  `PersistedPacket`, `SessionWithTimestamp`, `ExtendedError` (passed by a
  middleware to `next` to refuse a socket) and `SessionData`, built from an
  auth mapping by `parse_session_data`.
- `sockethub.cluster_types` — `MessageType` and the message and response
  dataclasses (`ClusterMessage`, `BroadcastMessage`, `FetchSocketsMessage`,
  `ServerSideEmitMessage`, `FetchSocketsResponse`, …) plus the pending
  request records `ClusterRequest`, `CustomClusterRequest` and
  `ClusterAckRequest`.
- `sockethub.remote_socket` — `RemoteSocket`, a read-only view (`id`,
  `handshake`, `rooms`, `data`) built from a `SocketResponse`.
- `sockethub.options` — `ClusterAdapterOptions` with `heartbeat_interval`
  (seconds) and `heartbeat_timeout` (milliseconds); `assign` copies the set
  values of another instance.
- `sockethub.util` — `PacketOptions`, `encode_options` / `decode_options`,
  `random_id` (16 hex characters), `uid2(length)` (URL-safe base64), and the
  thread-based `Timer` with `set_timeout`, `set_interval` and `clear_timer`.

## What the objects expect from you

The package does not hold connections. A `Namespace` needs a server object
exposing `encoder` (with `encode(packet)` returning a list of encoded
frames) and `adapter` (a builder such as `AdapterBuilder()`). Sockets stored
in `namespace.sockets` must offer `id`, `client.write_to_engine(frames,
options)`, `acks`, `join`, `leave` and `disconnect`.

## What it does not do

- There is no server, transport, client connection or socket class, and no
  packet encoder: these are supplied by the application.
- There is no adapter that spreads operations across several servers. The
  cluster message types and `ClusterAdapterOptions` describe what such an
  adapter would exchange, but publishing messages, tracking other nodes and
  heartbeats are not implemented here.
- Sessions are not stored: `Adapter.persist_session` and
  `Adapter.restore_session` only emit `persist-session` and
  `restore-session` events, and the latter returns `None`.

## Running the tests

```
pip install -e ".[test]"
pytest
```