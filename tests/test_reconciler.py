import pytest

from conftest import BASE_HOSTS, make_attrs, network
from hostsync.errors import HostsFileError
from hostsync.hosts_manager import START_MARKER


@pytest.fixture
def render_calls(hosts_manager, monkeypatch):
    calls = []
    real_render = hosts_manager.render

    def counting_render(registry):
        calls.append(dict(registry))
        real_render(registry)

    monkeypatch.setattr(hosts_manager, "render", counting_render)
    return calls


def add_web(client, container_id="c1"):
    client.containers.add(container_id, make_attrs(
        "web", hostname="web-1", networks={"net1": network("172.18.0.2", "api")}
    ))


def test_seed_skips_failures_and_does_not_render(client, reconciler, render_calls):
    client.containers.add("A", make_attrs(
        "A", hostname="A", networks={"net1": network("10.0.0.2", "A", "A")}
    ))
    client.containers.add("B", make_attrs("B", hostname="B"))

    reconciler.seed(["A", "B", "gone"])

    assert set(reconciler.snapshot()) == {"A", "B"}
    assert reconciler.snapshot()["B"] == []
    assert render_calls == []


def test_seed_then_render_writes_one_line_per_usable_address(client, hosts_manager, reconciler):
    client.containers.add("A", make_attrs(
        "A", hostname="A", networks={"net1": network("10.0.0.2", "A", "A")}
    ))
    client.containers.add("B", make_attrs("B", hostname="B"))

    reconciler.seed(["A", "B"])
    reconciler.render()

    assert hosts_manager.read_managed_entries() == [("10.0.0.2", frozenset({"A"}))]


def test_on_start_registers_and_renders(client, hosts_manager, reconciler, render_calls):
    add_web(client)

    reconciler.on_start("c1")

    assert len(render_calls) == 1
    assert hosts_manager.read_managed_entries() == [
        ("172.18.0.2", frozenset({"web", "web-1", "api"}))
    ]


def test_on_start_replaces_existing_entry(client, hosts_manager, reconciler):
    add_web(client)
    reconciler.on_start("c1")
    client.containers.add("c1", make_attrs(
        "web", hostname="web-1", networks={"net1": network("172.18.0.9", "api")}
    ))

    reconciler.on_start("c1")

    assert [ip for ip, _ in hosts_manager.read_managed_entries()] == ["172.18.0.9"]


def test_on_start_inspection_failure_changes_nothing(hosts_file, reconciler, render_calls):
    before = hosts_file.read_bytes()

    reconciler.on_start("C")

    assert reconciler.snapshot() == {}
    assert render_calls == []
    assert hosts_file.read_bytes() == before


def test_on_stop_removes_and_renders(client, hosts_file, reconciler, render_calls):
    add_web(client)
    reconciler.on_start("c1")

    reconciler.on_stop("c1")

    assert reconciler.snapshot() == {}
    assert len(render_calls) == 2
    assert hosts_file.read_text() == BASE_HOSTS


def test_on_stop_unknown_id_is_noop(client, hosts_file, reconciler, render_calls):
    add_web(client)
    reconciler.on_start("c1")

    reconciler.on_stop("never-started")
    reconciler.on_stop("c1")
    reconciler.on_stop("c1")

    assert len(render_calls) == 2
    assert reconciler.snapshot() == {}
    assert hosts_file.read_text() == BASE_HOSTS


def test_on_stop_unknown_id_leaves_registry_and_file(client, hosts_file, reconciler, render_calls):
    add_web(client)
    reconciler.on_start("c1")
    before = hosts_file.read_bytes()
    snapshot = reconciler.snapshot()

    reconciler.on_stop("other")

    assert reconciler.snapshot() == snapshot
    assert hosts_file.read_bytes() == before
    assert len(render_calls) == 1


def test_render_failure_propagates_but_registry_is_updated(client, hosts_file, reconciler):
    add_web(client)
    hosts_file.unlink()

    with pytest.raises(HostsFileError):
        reconciler.on_start("c1")

    assert "c1" in reconciler.snapshot()


def test_shutdown_removes_managed_section(client, hosts_file, reconciler):
    add_web(client)
    reconciler.on_start("c1")
    assert START_MARKER in hosts_file.read_bytes()

    reconciler.shutdown()

    assert reconciler.snapshot() == {}
    assert hosts_file.read_text() == BASE_HOSTS


def test_shutdown_tolerates_render_failure(client, hosts_file, reconciler):
    add_web(client)
    reconciler.on_start("c1")
    hosts_file.unlink()

    reconciler.shutdown()

    assert reconciler.snapshot() == {}
