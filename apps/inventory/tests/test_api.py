from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from inventory_sources import PersistenceFailure, SchedulerBusy, Snapshot, SourceConfigurationError

from apps.inventory.reconciler import reconcile
from apps.inventory.scheduler import Scheduler
from apps.inventory.tasks import build_scheduler, record_sync_run

from .fakes import FakeSource, UnavailableSource, host, workload

INVENTORY_URL = "/api/v1/inventory/"


def _seed():
    node_a = host("k8s-a", addresses={"lan": "10.0.0.5"})
    node_b = host("k8s-b", status="offline")
    pve = host("pve1", type="proxmox-node", cluster="pve")
    snapshot = Snapshot(
        hosts=[node_a, node_b, pve],
        workloads=[
            workload("web", host_id=node_a.id),
            workload("db", type="k8s-statefulset", health_status="unhealthy", status="pending", host_id=node_b.id),
            workload("vm-100", namespace="pve1", type="proxmox-vm", health_status="unknown", host_id=pve.id),
        ],
    )
    reconcile(snapshot)
    return snapshot


class APITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = get_user_model().objects.create_user(username="viewer", password="viewer")
        self.client.force_authenticate(user=self.user)


class TestAuthentication(TestCase):
    def test_anonymous_requests_are_rejected(self):
        response = APIClient().get(f"{INVENTORY_URL}hosts/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TestHostEndpoints(APITestCase):
    def setUp(self):
        super().setUp()
        self.snapshot = _seed()

    def test_list_hosts(self):
        response = self.client.get(f"{INVENTORY_URL}hosts/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(data["count"], 3)
        self.assertEqual([h["name"] for h in data["results"]], ["k8s-a", "k8s-b", "pve1"])

    def test_filter_hosts(self):
        by_status = self.client.get(f"{INVENTORY_URL}hosts/", {"status": "offline"}).json()
        self.assertEqual([h["name"] for h in by_status["results"]], ["k8s-b"])

        by_type = self.client.get(f"{INVENTORY_URL}hosts/", {"type": "proxmox-node"}).json()
        self.assertEqual([h["name"] for h in by_type["results"]], ["pve1"])

        by_cluster = self.client.get(f"{INVENTORY_URL}hosts/", {"cluster": "homelab"}).json()
        self.assertEqual(by_cluster["count"], 2)

    def test_invalid_status_filter_is_rejected(self):
        response = self.client.get(f"{INVENTORY_URL}hosts/", {"status": "exploded"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_hosts_by_name(self):
        data = self.client.get(f"{INVENTORY_URL}hosts/", {"search": "pve"}).json()
        self.assertEqual([h["name"] for h in data["results"]], ["pve1"])

    def test_retrieve_host(self):
        node_a = self.snapshot.hosts[0]

        response = self.client.get(f"{INVENTORY_URL}hosts/{node_a.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(data["id"], str(node_a.id))
        self.assertEqual(data["addresses"], {"lan": "10.0.0.5"})

    def test_retrieve_missing_host(self):
        response = self.client.get(f"{INVENTORY_URL}hosts/{host('nowhere').id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_hosts_are_read_only(self):
        response = self.client.post(f"{INVENTORY_URL}hosts/", {"name": "x"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class TestWorkloadEndpoints(APITestCase):
    def setUp(self):
        super().setUp()
        self.snapshot = _seed()

    def test_filter_workloads(self):
        unhealthy = self.client.get(f"{INVENTORY_URL}workloads/", {"health_status": "unhealthy"}).json()
        self.assertEqual([w["name"] for w in unhealthy["results"]], ["db"])

        in_pve = self.client.get(f"{INVENTORY_URL}workloads/", {"namespace": "pve1"}).json()
        self.assertEqual([w["name"] for w in in_pve["results"]], ["vm-100"])

        pending = self.client.get(f"{INVENTORY_URL}workloads/", {"status": "pending"}).json()
        self.assertEqual([w["name"] for w in pending["results"]], ["db"])

    def test_filter_workloads_by_host(self):
        node_a = self.snapshot.hosts[0]

        data = self.client.get(f"{INVENTORY_URL}workloads/", {"host_id": str(node_a.id)}).json()

        self.assertEqual([w["name"] for w in data["results"]], ["web"])
        self.assertEqual(data["results"][0]["host_id"], str(node_a.id))

    def test_retrieve_workload(self):
        web = self.snapshot.workloads[0]

        data = self.client.get(f"{INVENTORY_URL}workloads/{web.id}/").json()

        self.assertEqual(data["name"], "web")
        self.assertEqual(data["health_status"], "healthy")


class TestInventoryEndpoints(APITestCase):
    def test_inventory_returns_everything(self):
        _seed()

        response = self.client.get(INVENTORY_URL)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(len(data["hosts"]), 3)
        self.assertEqual(len(data["workloads"]), 3)

    def test_empty_inventory(self):
        self.assertEqual(self.client.get(INVENTORY_URL).json(), {"hosts": [], "workloads": []})

    def test_stats(self):
        _seed()

        data = self.client.get(f"{INVENTORY_URL}stats/").json()

        self.assertEqual(data, {
            "total_hosts": 3,
            "total_workloads": 3,
            "healthy_workloads": 1,
            "unhealthy_workloads": 1,
        })

    @override_settings(INVENTORY_SOURCES=[
        {"kind": "static", "name": "files", "config": {"hosts": [], "token": "secret"}},
        {"kind": "vmware", "name": "vcenter", "enabled": False},
    ])
    def test_sources(self):
        data = self.client.get(f"{INVENTORY_URL}sources/").json()

        kinds = {s["kind"] for s in data["registered"]}
        self.assertTrue({"kubernetes", "proxmox", "static"} <= kinds)
        self.assertEqual(data["configured"], [
            {"name": "files", "kind": "static", "enabled": True, "registered": True},
            {"name": "vcenter", "kind": "vmware", "enabled": False, "registered": False},
        ])
        self.assertNotIn("secret", str(data))

    def test_sync_runs(self):
        scheduler = Scheduler([FakeSource("k8s", Snapshot(hosts=[host("k8s-a")])), UnavailableSource("pve")],
                              on_complete=record_sync_run)
        scheduler.trigger()

        data = self.client.get(f"{INVENTORY_URL}sync-runs/").json()

        self.assertEqual(data["count"], 1)
        run = data["results"][0]
        self.assertEqual(run["status"], "partial")
        self.assertEqual(run["hosts_added"], 1)
        self.assertEqual(run["source_failures"][0]["source"], "pve")

        detail = self.client.get(f"{INVENTORY_URL}sync-runs/{run['id']}/").json()
        self.assertEqual(detail["id"], run["id"])


class TestRefreshEndpoint(TestCase):
    url = f"{INVENTORY_URL}refresh/"

    def setUp(self):
        self.client = APIClient()
        admin = get_user_model().objects.create_user(username="admin", password="admin", is_staff=True)
        self.client.force_authenticate(user=admin)

    def _patch_scheduler(self, scheduler):
        return mock.patch("apps.inventory.v1.views.get_scheduler", return_value=scheduler)

    def test_refresh_runs_a_cycle(self):
        snapshot = Snapshot(
            hosts=[host("k8s-a"), host("k8s-b"), host("pve1", type="proxmox-node", cluster="pve")],
            workloads=[workload(name) for name in ("a", "b", "c", "d", "e")],
        )
        scheduler = Scheduler([FakeSource("k8s", snapshot)], on_complete=record_sync_run)

        with self._patch_scheduler(scheduler):
            response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(data["hosts_count"], 3)
        self.assertEqual(data["workloads_count"], 5)
        self.assertEqual(data["hosts_added"], 3)
        self.assertEqual(data["hosts_updated"], 0)
        self.assertEqual(data["workloads_added"], 5)
        self.assertEqual(data["workloads_updated"], 0)
        self.assertEqual(data["source_failures"], [])
        self.assertIn("timestamp", data)

        with self._patch_scheduler(scheduler):
            again = self.client.post(self.url).json()
        self.assertEqual(again["hosts_updated"], 3)
        self.assertEqual(again["hosts_added"], 0)

    def test_refresh_while_busy_returns_409(self):
        scheduler = mock.Mock(trigger=mock.Mock(side_effect=SchedulerBusy("A sync cycle is already running")))

        with self._patch_scheduler(scheduler):
            response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json(), {"detail": "A sync cycle is already running"})

    def test_persistence_failure_returns_500_with_stage(self):
        error = PersistenceFailure("insert hosts 1234", "disk full")
        scheduler = mock.Mock(trigger=mock.Mock(side_effect=error))

        with self._patch_scheduler(scheduler):
            response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "disk full", "stage": "store", "operation": "insert hosts 1234"})

    def test_configuration_error_returns_500_with_stage(self):
        scheduler = mock.Mock(trigger=mock.Mock(side_effect=SourceConfigurationError("bad INVENTORY_SOURCES")))

        with self._patch_scheduler(scheduler):
            response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "bad INVENTORY_SOURCES", "stage": "configure"})

    @override_settings(INVENTORY_SOURCES=[
        {"kind": "static", "name": "files", "config": {"hosts": [{"name": "nas", "type": "docker-host"}]}},
        {"kind": "kubernetes", "name": "k8s", "config": {"api_url": "https://k8s.lan:6443"}},
    ])
    def test_misconfigured_source_still_refreshes(self):
        with self._patch_scheduler(build_scheduler()):
            response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(data["hosts_added"], 1)
        self.assertEqual([(f["source"], f["stage"]) for f in data["source_failures"]], [("k8s", "configure")])

    def test_refresh_requires_staff(self):
        viewer = get_user_model().objects.create_user(username="viewer", password="viewer")
        client = APIClient()
        client.force_authenticate(user=viewer)

        response = client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
