import uuid

import pytest

from inventory_sources.identity import assign_id, natural_key, strip_cidr


def _corpus():
    keys = []
    for kind in ("proxmox-node", "proxmox-vm", "proxmox-lxc", "k8s-node", "k8s-pod", "static-host"):
        for cluster in ("homelab", "prod", "edge-1"):
            for i in range(300):
                keys.append(f"{kind}:{cluster}:{i}")
    return keys


class TestAssignId:
    def test_same_key_same_id(self):
        for key in _corpus():
            assert assign_id(key) == assign_id(key)

    def test_distinct_keys_distinct_ids(self):
        keys = _corpus()
        ids = {assign_id(k) for k in keys}
        assert len(ids) == len(keys)

    def test_result_is_a_version_5_uuid(self):
        value = assign_id("proxmox-node:homelab:pve")
        assert isinstance(value, uuid.UUID)
        assert value.version == 5
        assert value.variant == uuid.RFC_4122

    def test_known_value(self):
        # sha1("a") = 86f7e437faa5a7fce15d1ddcb9eaeaea377667b8
        assert str(assign_id("a")) == "86f7e437-faa5-57fc-a15d-1ddcb9eaeaea"

    def test_no_normalization(self):
        assert assign_id("k8s-node:prod:a") != assign_id("k8s-node:prod:A")
        assert assign_id("k8s-node:prod:a") != assign_id(" k8s-node:prod:a")

    def test_rejects_empty_and_non_str(self):
        with pytest.raises(ValueError):
            assign_id("")
        with pytest.raises(TypeError):
            assign_id(b"proxmox-node:homelab:pve")


class TestNaturalKey:
    def test_joins_parts(self):
        assert natural_key("proxmox-vm", "homelab", 101) == "proxmox-vm:homelab:101"

    @pytest.mark.parametrize("parts", [(), ("k8s-node", ""), ("k8s-node", " prod")])
    def test_rejects_bad_parts(self, parts):
        with pytest.raises(ValueError):
            natural_key(*parts)


@pytest.mark.parametrize(
    "address,expected",
    [("10.0.0.5/24", "10.0.0.5"), ("10.0.0.5", "10.0.0.5"), ("fd00::1/64", "fd00::1")],
)
def test_strip_cidr(address, expected):
    assert strip_cidr(address) == expected
