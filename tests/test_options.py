from sockethub.options import ClusterAdapterOptions


def test_defaults_are_unset():
    opts = ClusterAdapterOptions()
    assert opts.heartbeat_interval is None
    assert opts.heartbeat_timeout is None


def test_assign_copies_set_values():
    target = ClusterAdapterOptions()
    result = target.assign(ClusterAdapterOptions(heartbeat_interval=2.5, heartbeat_timeout=7000))
    assert result is target
    assert target.heartbeat_interval == 2.5
    assert target.heartbeat_timeout == 7000


def test_assign_none_leaves_options_unchanged():
    target = ClusterAdapterOptions(heartbeat_interval=1.0, heartbeat_timeout=500)
    assert target.assign(None) is target
    assert target == ClusterAdapterOptions(heartbeat_interval=1.0, heartbeat_timeout=500)


def test_assign_does_not_override_with_unset_values():
    target = ClusterAdapterOptions(heartbeat_interval=3.0, heartbeat_timeout=900)
    target.assign(ClusterAdapterOptions(heartbeat_timeout=1200))
    assert target.heartbeat_interval == 3.0
    assert target.heartbeat_timeout == 1200