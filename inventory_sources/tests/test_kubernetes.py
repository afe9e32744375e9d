import pytest
import requests

from inventory_sources.base import SourceSettings
from inventory_sources.errors import SourceConfigurationError, SourceUnavailable
from inventory_sources.identity import assign_id
from inventory_sources.kubernetes import KubernetesSource, node_status, pod_status, replica_status

from .fakes import FakeResponse, FakeSession

CONFIG = {"api_url": "https://k8s.lan:6443", "token": "t0ken", "cluster": "prod"}


def _node(name, ready="True", internal_ip="10.0.0.11"):
    return {
        "metadata": {"name": name, "labels": {"kubernetes.io/os": "linux"}},
        "status": {
            "addresses": [
                {"type": "InternalIP", "address": internal_ip},
                {"type": "Hostname", "address": f"{name}.tailscale.net"},
            ],
            "conditions": [{"type": "Ready", "status": ready}],
            "capacity": {"cpu": "4"},
        },
    }


def _deployment(name, replicas=2, ready=2):
    return {
        "metadata": {"name": name, "labels": {"app": name}},
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": {"app": name}},
            "template": {"spec": {"containers": [{"name": name, "image": f"{name}:1.0"}]}},
        },
        "status": {"readyReplicas": ready},
    }


def _pod(name, node="node-a", phase="Running", ip="10.42.0.7"):
    return {
        "metadata": {"name": name},
        "spec": {"nodeName": node, "containers": [{"name": "c", "image": "img"}]},
        "status": {"phase": phase, "podIP": ip},
    }


def _routes(**overrides):
    routes = {
        "/api/v1/nodes": {"items": [_node("node-a"), _node("node-b", ready="False")]},
        "/api/v1/namespaces": {"items": [
            {"metadata": {"name": "default"}},
            {"metadata": {"name": "kube-public"}},
            {"metadata": {"name": "media"}},
        ]},
        "/apis/apps/v1/namespaces/default/deployments": {"items": [_deployment("web")]},
        "/apis/apps/v1/namespaces/default/statefulsets": {"items": []},
        "/apis/apps/v1/namespaces/default/daemonsets": {"items": []},
        "/api/v1/namespaces/default/pods": {"items": [_pod("web-1")]},
        "/apis/apps/v1/namespaces/media/deployments": {"items": [_deployment("jellyfin", ready=0)]},
        "/apis/apps/v1/namespaces/media/statefulsets": {"items": []},
        "/apis/apps/v1/namespaces/media/daemonsets": {"items": []},
        "/api/v1/namespaces/media/pods": {"items": []},
    }
    routes.update(overrides)
    return routes


def _source(routes, **config):
    session = FakeSession(routes)
    source = KubernetesSource(SourceSettings(name="k8s-prod", kind="kubernetes", config={**CONFIG, **config}), session=session)
    return source, session


class TestKubernetesDiscovery:
    def test_nodes_become_hosts(self):
        source, _ = _source(_routes())
        snapshot = source.discover()

        hosts = {h.name: h for h in snapshot.hosts}
        assert set(hosts) == {"node-a", "node-b"}
        assert hosts["node-a"].id == assign_id("k8s-node:prod:node-a")
        assert hosts["node-a"].status == "online"
        assert hosts["node-b"].status == "offline"
        assert hosts["node-a"].addresses == {"lan": "10.0.0.11", "tailscale": "node-a.tailscale.net"}
        assert hosts["node-a"].cluster == "prod"
        assert hosts["node-a"].tags == ["kubernetes.io/os"]

    def test_workloads_from_every_namespace_except_excluded(self):
        source, session = _source(_routes())
        snapshot = source.discover()

        names = sorted((w.namespace, w.type, w.name) for w in snapshot.workloads)
        assert names == [
            ("default", "k8s-deployment", "web"),
            ("default", "k8s-pod", "web-1"),
            ("media", "k8s-deployment", "jellyfin"),
        ]
        assert not any("kube-public" in path for path in session.calls)
        assert snapshot.failures == []

    def test_health_and_ids(self):
        source, _ = _source(_routes())
        by_name = {w.name: w for w in source.discover().workloads}

        web = by_name["web"]
        assert web.id == assign_id("k8s-deployment:prod:default/web")
        assert (web.status, web.health_status) == ("running", "healthy")
        assert web.spec["containers"] == [{"name": "web", "image": "web:1.0"}]

        jellyfin = by_name["jellyfin"]
        assert (jellyfin.status, jellyfin.health_status) == ("pending", "unhealthy")

        pod = by_name["web-1"]
        assert pod.host_id == assign_id("k8s-node:prod:node-a")
        assert pod.spec["podIP"] == "10.42.0.7"

    def test_pod_id_ignores_ephemeral_pod_ip(self):
        first, _ = _source(_routes())
        second, _ = _source(_routes(**{
            "/api/v1/namespaces/default/pods": {"items": [_pod("web-1", ip="10.42.3.99")]},
        }))
        pod_a = next(w for w in first.discover().workloads if w.name == "web-1")
        pod_b = next(w for w in second.discover().workloads if w.name == "web-1")
        assert pod_a.id == pod_b.id
        assert pod_a.spec["podIP"] != pod_b.spec["podIP"]

    def test_one_namespace_failure_is_partial(self):
        routes = _routes(**{
            "/apis/apps/v1/namespaces/media/deployments": FakeResponse({"message": "forbidden"}, status_code=403),
        })
        source, _ = _source(routes)
        snapshot = source.discover()

        assert [f.resource for f in snapshot.failures] == ["namespace/media/deployments"]
        assert {w.name for w in snapshot.workloads} == {"web", "web-1"}
        assert len(snapshot.hosts) == 2

    def test_malformed_item_is_partial(self):
        routes = _routes(**{
            "/apis/apps/v1/namespaces/media/deployments": {"items": [{"metadata": {}}, _deployment("jellyfin")]},
        })
        source, _ = _source(routes)
        snapshot = source.discover()

        assert [f.resource for f in snapshot.failures] == ["namespace/media/deployments[0]"]
        assert {w.name for w in snapshot.workloads} == {"web", "web-1", "jellyfin"}

    def test_malformed_node_is_partial(self):
        source, _ = _source(_routes(**{"/api/v1/nodes": {"items": [_node("node-a"), {"metadata": {}}]}}))
        snapshot = source.discover()

        assert [h.name for h in snapshot.hosts] == ["node-a"]
        assert [f.resource for f in snapshot.failures] == ["nodes[1]"]
        assert len(snapshot.workloads) == 3

    def test_namespace_listing_failure_keeps_hosts(self):
        source, _ = _source(_routes(**{"/api/v1/namespaces": requests.ConnectionError("reset")}))
        snapshot = source.discover()
        assert len(snapshot.hosts) == 2
        assert snapshot.workloads == []
        assert [f.resource for f in snapshot.failures] == ["namespaces"]

    def test_auth_rejected_is_source_unavailable(self):
        source, _ = _source(_routes(**{"/api/v1/nodes": FakeResponse({}, status_code=401)}))
        with pytest.raises(SourceUnavailable) as exc_info:
            source.discover()
        assert exc_info.value.source == "k8s-prod"

    def test_configured_namespaces_skip_listing(self):
        source, session = _source(_routes(), namespaces=["media"])
        snapshot = source.discover()
        assert "/api/v1/namespaces" not in session.calls
        assert [w.name for w in snapshot.workloads] == ["jellyfin"]

    def test_bearer_token_header(self):
        _, session = _source(_routes())
        assert session.headers["Authorization"] == "Bearer t0ken"

    def test_missing_token_is_configuration_error(self):
        with pytest.raises(SourceConfigurationError):
            KubernetesSource(SourceSettings(name="k", kind="kubernetes", config={"api_url": "https://x"}))


class TestStatusRules:
    @pytest.mark.parametrize(
        "desired,ready,expected",
        [
            (0, 0, ("unknown", "unknown")),
            (3, 3, ("running", "healthy")),
            (3, 0, ("pending", "unhealthy")),
            (3, 1, ("unknown", "unhealthy")),
        ],
    )
    def test_replica_status(self, desired, ready, expected):
        assert replica_status(desired, ready) == expected

    @pytest.mark.parametrize(
        "phase,expected",
        [
            ("Running", ("running", "healthy")),
            ("Pending", ("pending", "unhealthy")),
            ("Failed", ("failed", "unhealthy")),
            (None, ("unknown", "unknown")),
        ],
    )
    def test_pod_status(self, phase, expected):
        assert pod_status({"status": {"phase": phase}}) == expected

    def test_node_status(self):
        assert node_status({"status": {}}) == "unknown"
        assert node_status(_node("n", ready="Unknown")) == "degraded"
