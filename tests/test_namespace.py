import pytest

from sockethub.adapter import Adapter, AdapterBuilder
from sockethub.namespace import Namespace
from sockethub.remote_socket import RemoteSocket
from sockethub.types import ExtendedError


class FakeEncoder:
    def __init__(self):
        self.packets = []

    def encode(self, packet):
        self.packets.append(packet)
        return [f"{int(packet.type)}{packet.data}"]


class FakeServer:
    def __init__(self, builder=None):
        self.encoder = FakeEncoder()
        self.adapter = builder or AdapterBuilder()


class FakeClient:
    def __init__(self):
        self.writes = []

    def write_to_engine(self, encoded, opts):
        self.writes.append(list(encoded))


class FakeSocket:
    def __init__(self, sid):
        self.id = sid
        self.client = FakeClient()
        self.acks = {}
        self.joined = []
        self.left = []
        self.disconnected = []
        self.handshake = None
        self.data = None
        self.rooms = {sid}

    def join(self, *rooms):
        self.joined.extend(rooms)

    def leave(self, room):
        self.left.append(room)

    def disconnect(self, close):
        self.disconnected.append(close)


class RecordingAdapter:
    def __init__(self, nsp):
        self.nsp = nsp
        self.emitted = []

    def server_side_emit(self, packet):
        self.emitted.append(packet)


class RecordingBuilder:
    def new(self, nsp):
        return RecordingAdapter(nsp)


def make_namespace(*sids, rooms=None):
    nsp = Namespace(FakeServer(), "/test")
    sockets = {}
    for sid in sids:
        sock = FakeSocket(sid)
        nsp.sockets[sid] = sock
        nsp.adapter.add_all(sid, {sid, *(rooms or {}).get(sid, ())})
        sockets[sid] = sock
    return nsp, sockets


def test_init_adapter_attaches_adapter():
    nsp = Namespace(FakeServer(), "/test")
    assert isinstance(nsp.adapter, Adapter)
    assert nsp.adapter.nsp is nsp
    assert nsp.name == "/test"


def test_next_id_increments():
    nsp = Namespace(FakeServer(), "/")
    assert [nsp.next_id(), nsp.next_id(), nsp.next_id()] == [1, 2, 3]


def test_use_returns_namespace_and_registers():
    nsp = Namespace(FakeServer(), "/")

    def mw(socket, next_):
        next_(None)

    assert nsp.use(mw) is nsp
    assert nsp.middlewares == [mw]


def test_run_without_middleware_calls_fn():
    nsp = Namespace(FakeServer(), "/")
    results = []
    nsp.run(object(), results.append)
    assert results == [None]


def test_run_calls_middlewares_in_order():
    nsp = Namespace(FakeServer(), "/")
    order = []
    nsp.use(lambda s, n: (order.append("a"), n(None)))
    nsp.use(lambda s, n: (order.append("b"), n(None)))
    results = []
    nsp.run("sock", results.append)
    assert order == ["a", "b"]
    assert results == [None]


def test_run_short_circuits_on_error():
    nsp = Namespace(FakeServer(), "/")
    err = ExtendedError("denied", {"code": 1})
    called = []
    nsp.use(lambda s, n: n(err))
    nsp.use(lambda s, n: called.append(s))
    results = []
    nsp.run("sock", results.append)
    assert results == [err]
    assert called == []


def test_remove_deletes_socket_and_runs_cleanup():
    nsp, sockets = make_namespace("a")
    calls = []
    nsp.cleanup(lambda: calls.append(True))
    nsp.remove(sockets["a"])
    assert "a" not in nsp.sockets
    nsp.remove(sockets["a"])
    assert calls == [True, True]


def test_emit_reaches_every_socket():
    nsp, sockets = make_namespace("a", "b")
    nsp.emit("hello", "world")
    assert all(len(s.client.writes) == 1 for s in sockets.values())
    assert nsp.server.encoder.packets[-1].data == ["hello", "world"]
    assert nsp.server.encoder.packets[-1].nsp == "/test"


def test_emit_reserved_event_raises():
    nsp, _ = make_namespace("a")
    with pytest.raises(ValueError):
        nsp.emit("connect")


def test_to_and_except_select_sockets():
    nsp, sockets = make_namespace("a", "b", "c", rooms={"a": ["r"], "b": ["r"]})
    nsp.to("r").except_("b").emit("ev")
    assert len(sockets["a"].client.writes) == 1
    assert sockets["b"].client.writes == []
    assert sockets["c"].client.writes == []


def test_in_is_alias_of_to():
    nsp, sockets = make_namespace("a", "b", rooms={"b": ["r"]})
    nsp.in_("r").emit("ev")
    assert sockets["a"].client.writes == []
    assert len(sockets["b"].client.writes) == 1


def test_send_and_write_emit_message():
    nsp, sockets = make_namespace("a")
    assert nsp.send("hi") is nsp
    assert nsp.write("there") is nsp
    data = [p.data for p in nsp.server.encoder.packets]
    assert data == [["message", "hi"], ["message", "there"]]
    assert len(sockets["a"].client.writes) == 2


def test_server_side_emit_reserved_event_raises():
    nsp = Namespace(FakeServer(), "/")
    with pytest.raises(ValueError):
        nsp.server_side_emit("connection")


def test_server_side_emit_unsupported_by_base_adapter():
    nsp = Namespace(FakeServer(), "/")
    with pytest.raises(RuntimeError):
        nsp.server_side_emit("ping")


def test_server_side_emit_forwards_packet():
    nsp = Namespace(FakeServer(RecordingBuilder()), "/")
    nsp.server_side_emit("ping", 1, 2)
    assert nsp.adapter.emitted == [["ping", 1, 2]]


def test_server_side_emit_with_ack_appends_ack():
    nsp = Namespace(FakeServer(RecordingBuilder()), "/")

    def ack(args, err):
        pass

    nsp.server_side_emit_with_ack("ping", "x")(ack)
    assert nsp.adapter.emitted == [["ping", "x", ack]]


def test_on_server_side_emit_dispatches_to_listeners():
    nsp = Namespace(FakeServer(), "/")
    received = []
    nsp.on("hello", lambda *args: received.append(args))
    nsp.on_server_side_emit(["hello", "world", 3])
    nsp.on_server_side_emit([])
    nsp.on_server_side_emit([42, "ignored"])
    assert received == [("world", 3)]


def test_all_sockets_returns_ids():
    nsp, _ = make_namespace("a", "b")
    assert nsp.all_sockets() == {"a", "b"}


def test_flag_modifiers():
    nsp = Namespace(FakeServer(), "/")
    assert nsp.compress(True).flags.compress is True
    assert nsp.volatile().flags.volatile is True
    assert nsp.local().flags.local is True
    assert nsp.timeout(2.5).flags.timeout == 2.5


def test_fetch_sockets_returns_remote_views():
    nsp, _ = make_namespace("a", "b")
    results = []
    nsp.fetch_sockets(lambda sockets, err: results.append((sockets, err)))
    sockets, err = results[0]
    assert err is None
    assert all(isinstance(s, RemoteSocket) for s in sockets)
    assert {s.id for s in sockets} == {"a", "b"}


def test_sockets_join_and_leave():
    nsp, sockets = make_namespace("a")
    nsp.sockets_join("r1", "r2")
    nsp.sockets_leave("r1")
    assert sockets["a"].joined == ["r1", "r2"]
    assert sockets["a"].left == ["r1"]


def test_disconnect_sockets():
    nsp, sockets = make_namespace("a", "b")
    nsp.disconnect_sockets(True)
    assert sockets["a"].disconnected == [True]
    assert sockets["b"].disconnected == [True]


def test_emit_with_ack_and_no_clients_resolves_immediately():
    nsp = Namespace(FakeServer(), "/")
    results = []
    nsp.timeout(5).emit("ev", lambda args, err: results.append((args, err)))
    assert results == [([], None)]