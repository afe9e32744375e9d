import pytest
import requests

from inventory_sources.base import SourceSettings
from inventory_sources.errors import SourceConfigurationError, SourceUnavailable
from inventory_sources.identity import assign_id
from inventory_sources.proxmox import ProxmoxSource

from .fakes import FakeResponse, FakeSession

CONFIG = {
    "base_url": "https://pve.homelab.lan:8006",
    "token_id": "inventory@pve!ro",
    "token_secret": "s3cret",
}


def _routes(**overrides):
    routes = {
        "/api2/json/nodes": {"data": [
            {"node": "pve", "status": "online", "cpu": 0.12, "maxcpu": 8, "mem": 1024, "maxmem": 4096},
            {"node": "pve2", "status": "offline"},
        ]},
        "/api2/json/nodes/pve/qemu": {"data": [
            {"vmid": 101, "name": "k3s-master", "status": "running", "maxmem": 2048},
            {"vmid": 102, "name": "win11", "status": "paused"},
        ]},
        "/api2/json/nodes/pve/lxc": {"data": [
            {"vmid": 200, "name": "pihole", "status": "stopped", "tags": "dns;infra"},
        ]},
        "/api2/json/version": {"data": {"version": "8.2.4"}},
    }
    routes.update(overrides)
    return routes


def _source(routes, **config):
    session = FakeSession(routes)
    settings = SourceSettings(name="pve-homelab", kind="proxmox", config={**CONFIG, **config})
    return ProxmoxSource(settings, session=session), session


class TestProxmoxDiscovery:
    def test_nodes_become_hosts(self):
        source, _ = _source(_routes(), cluster="homelab")
        snapshot = source.discover()

        pve = next(h for h in snapshot.hosts if h.name == "pve")
        assert pve.id == assign_id("proxmox-node:homelab:pve")
        assert pve.type == "proxmox-node"
        assert pve.status == "online"
        assert pve.metadata["maxcpu"] == 8

        pve2 = next(h for h in snapshot.hosts if h.name == "pve2")
        assert pve2.status == "offline"

    def test_cluster_defaults_to_base_url_host(self):
        source, _ = _source(_routes())
        assert source.cluster == "pve.homelab.lan"

    def test_guests_become_workloads(self):
        source, _ = _source(_routes(), cluster="homelab")
        workloads = {w.name: w for w in source.discover().workloads}

        vm = workloads["k3s-master"]
        assert vm.id == assign_id("proxmox-vm:homelab:101")
        assert vm.host_id == assign_id("proxmox-node:homelab:pve")
        assert (vm.status, vm.health_status) == ("running", "healthy")
        assert vm.namespace == "pve"
        assert vm.spec["vmid"] == 101

        assert workloads["win11"].status == "stopped"
        assert workloads["win11"].health_status == "unknown"

        ct = workloads["pihole"]
        assert ct.type == "proxmox-lxc"
        assert ct.id == assign_id("proxmox-lxc:homelab:200")
        assert ct.metadata["tags"] == ["dns", "infra"]

    def test_offline_nodes_are_not_queried_for_guests(self):
        source, session = _source(_routes())
        source.discover()
        assert not any(path.startswith("/api2/json/nodes/pve2") for path in session.calls)

    def test_guest_id_survives_migration(self):
        source, _ = _source(_routes(), cluster="homelab")
        before = {w.name: w.id for w in source.discover().workloads}

        migrated = _routes(**{
            "/api2/json/nodes": {"data": [{"node": "pve", "status": "online"}, {"node": "pve2", "status": "online"}]},
            "/api2/json/nodes/pve/qemu": {"data": []},
            "/api2/json/nodes/pve2/qemu": {"data": [{"vmid": 101, "name": "k3s-master", "status": "running"}]},
            "/api2/json/nodes/pve2/lxc": {"data": []},
        })
        source, _ = _source(migrated, cluster="homelab")
        after = {w.name: w for w in source.discover().workloads}

        assert after["k3s-master"].id == before["k3s-master"]
        assert after["k3s-master"].host_id == assign_id("proxmox-node:homelab:pve2")

    def test_node_failure_is_partial(self):
        routes = _routes(**{
            "/api2/json/nodes": {"data": [{"node": "pve", "status": "online"}, {"node": "pve2", "status": "online"}]},
            "/api2/json/nodes/pve2/qemu": FakeResponse({}, status_code=595),
        })
        source, _ = _source(routes)
        snapshot = source.discover()

        assert [f.resource for f in snapshot.failures] == ["node/pve2"]
        assert {w.name for w in snapshot.workloads} == {"k3s-master", "win11", "pihole"}
        assert len(snapshot.hosts) == 2

    def test_malformed_guest_is_partial(self):
        routes = _routes(**{
            "/api2/json/nodes": {"data": [{"node": "pve", "status": "online"}, {"node": "pve2", "status": "online"}]},
            "/api2/json/nodes/pve2/qemu": {"data": [{"name": "no-vmid"}, {"vmid": 300, "name": "nextcloud"}]},
            "/api2/json/nodes/pve2/lxc": {"data": []},
        })
        source, _ = _source(routes)
        snapshot = source.discover()

        assert [f.resource for f in snapshot.failures] == ["node/pve2/qemu[0]"]
        assert "vmid" in snapshot.failures[0].error
        assert {w.name for w in snapshot.workloads} == {"k3s-master", "win11", "pihole", "nextcloud"}
        assert len(snapshot.hosts) == 2

    def test_malformed_node_is_partial(self):
        routes = _routes(**{"/api2/json/nodes": {"data": [{"node": "pve", "status": "online"}, {"status": "online"}]}})
        source, _ = _source(routes)
        snapshot = source.discover()

        assert [h.name for h in snapshot.hosts] == ["pve"]
        assert [f.resource for f in snapshot.failures] == ["nodes[1]"]
        assert {w.name for w in snapshot.workloads} == {"k3s-master", "win11", "pihole"}

    def test_unreachable_api_is_source_unavailable(self):
        source, _ = _source(_routes(**{"/api2/json/nodes": requests.ConnectTimeout("timed out")}))
        with pytest.raises(SourceUnavailable):
            source.discover()

    def test_token_header(self):
        _, session = _source(_routes())
        assert session.headers["Authorization"] == "PVEAPIToken=inventory@pve!ro=s3cret"

    def test_validate_connection(self):
        source, _ = _source(_routes())
        assert source.validate_connection() == (True, "Proxmox VE 8.2.4")

    @pytest.mark.parametrize(
        "override",
        [{"base_url": "pve.lan"}, {"token_id": "no-bang"}, {"token_secret": ""}],
    )
    def test_bad_configuration(self, override):
        with pytest.raises(SourceConfigurationError):
            _source(_routes(), **override)
