import logging
from typing import Any, Dict, Iterable, List, Optional

import pytest
from docker.errors import APIError, NotFound

from hostsync.config import Config
from hostsync.hosts_manager import HostsFileManager
from hostsync.inspector import AddressResolver
from hostsync.reconciler import HostsReconciler

BASE_HOSTS = "127.0.0.1\tlocalhost\n::1\tlocalhost ip6-localhost\n"


def make_attrs(
    name: str,
    hostname: str = "",
    domainname: str = "",
    networks: Optional[Dict[str, Dict[str, Any]]] = None,
    ip: str = "",
    labels: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build the subset of `docker inspect` output that the resolver reads."""
    return {
        "Name": f"/{name}",
        "Config": {"Hostname": hostname, "Domainname": domainname, "Labels": labels or {}},
        "NetworkSettings": {"IPAddress": ip, "Networks": networks or {}},
    }


def network(ip: str, *aliases: str) -> Dict[str, Any]:
    return {"IPAddress": ip, "Aliases": list(aliases) or None}


class FakeContainer:
    def __init__(self, container_id: str, attrs: Dict[str, Any]):
        self.id = container_id
        self.attrs = attrs


class FakeContainers:
    def __init__(self):
        self.by_id: Dict[str, FakeContainer] = {}
        self.broken: Dict[str, Exception] = {}
        # listed, but removed before they can be inspected
        self.vanished: List[str] = []

    def add(self, container_id: str, attrs: Dict[str, Any]) -> None:
        self.by_id[container_id] = FakeContainer(container_id, attrs)

    def remove(self, container_id: str) -> None:
        self.by_id.pop(container_id, None)

    def get(self, container_id: str) -> FakeContainer:
        if container_id in self.broken:
            raise self.broken[container_id]
        if container_id not in self.by_id:
            raise NotFound(f"No such container: {container_id}")
        return self.by_id[container_id]

    def list(self, all: bool = False, sparse: bool = False) -> List[FakeContainer]:
        ids = [*self.by_id, *self.vanished]
        if sparse:
            return [FakeContainer(cid, {"Id": cid}) for cid in ids]
        # docker-py inspects every listed container unless sparse=True
        return [self.get(cid) for cid in ids]


class FakeStream:
    def __init__(self, events: Iterable[Dict[str, Any]], error: Optional[Exception] = None):
        self.events = events
        self.error = error
        self.closed = False

    def __iter__(self):
        for event in self.events:
            if self.closed:
                return
            yield event
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        self.closed = True


class FakeClient:
    def __init__(self):
        self.containers = FakeContainers()
        self.stream = FakeStream([])
        self.events_error: Optional[Exception] = None
        self.closed = False

    def events(self, decode: bool = False) -> FakeStream:
        if self.events_error is not None:
            raise self.events_error
        return self.stream

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        self.closed = True


def container_event(action: str, container_id: str, name: str = "") -> Dict[str, Any]:
    return {
        "Type": "container",
        "Action": action,
        "id": container_id,
        "Actor": {"ID": container_id, "Attributes": {"name": name}},
    }


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("hostsync.tests")


@pytest.fixture
def hosts_file(tmp_path):
    path = tmp_path / "hosts"
    path.write_text(BASE_HOSTS)
    return path


@pytest.fixture
def config(hosts_file) -> Config:
    return Config(hosts_file_path=str(hosts_file))


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def resolver(client, config, logger) -> AddressResolver:
    return AddressResolver(client, config, logger)


@pytest.fixture
def hosts_manager(hosts_file, logger) -> HostsFileManager:
    return HostsFileManager(str(hosts_file), logger)


@pytest.fixture
def reconciler(resolver, hosts_manager, logger) -> HostsReconciler:
    return HostsReconciler(resolver, hosts_manager, logger)


@pytest.fixture
def api_error() -> APIError:
    return APIError("500 Server Error: Internal Server Error")
