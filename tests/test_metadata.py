import xml.etree.ElementTree as ET

import pytest
import yaml

from foundry.metadata import (
    DOMAIN_METADATA_ELEMENT,
    FLAGS_REMOVE,
    FLAGS_REPLACE,
    METADATA_KEY,
    METADATA_NAMESPACE,
    MetadataClient,
    MetadataError,
)
from foundry.models import (
    CloudInitSpec,
    NetworkInterfaceSpec,
    VirtualMachineSpec,
    VMPhase,
    new_virtual_machine,
)


class FakeLibvirt:
    def __init__(self):
        self.entries = {}
        self.calls = []
        self.fail = False

    def domain_set_metadata(self, dom, typ, metadata, key, uri, flags):
        self.calls.append((dom, typ, metadata, key, uri, flags))
        if self.fail:
            raise RuntimeError("connection lost")
        if flags == 1 or not metadata:
            self.entries.pop((dom, uri), None)
        else:
            self.entries[(dom, uri)] = metadata

    def domain_get_metadata(self, dom, typ, uri, flags):
        try:
            return self.entries[(dom, uri)]
        except KeyError:
            raise LookupError("metadata not found") from None


def make_vm(name="web-server"):
    vm = new_virtual_machine(name)
    vm.generation = 3
    vm.spec = VirtualMachineSpec(
        vcpus=2,
        memory_gib=4,
        network_interfaces=[NetworkInterfaceSpec(ip="10.0.0.1/24", gateway="10.0.0.254", bridge="br0")],
        cloud_init=CloudInitSpec(fqdn="web.example.com"),
    )
    return vm


def test_store_then_load_round_trip():
    fake = FakeLibvirt()
    client = MetadataClient(fake)
    vm = make_vm()

    client.store("dom1", vm)
    loaded = client.load("dom1")

    assert loaded.to_dict() == vm.to_dict()
    assert loaded.status.phase is VMPhase.PENDING


def test_store_passes_key_namespace_and_replace_flag():
    fake = FakeLibvirt()
    MetadataClient(fake).store("dom1", make_vm())

    dom, typ, _, key, uri, flags = fake.calls[0]
    assert (dom, typ, key, uri, flags) == (
        "dom1",
        DOMAIN_METADATA_ELEMENT,
        METADATA_KEY,
        METADATA_NAMESPACE,
        FLAGS_REPLACE,
    )


def test_store_wraps_yaml_in_namespaced_element():
    fake = FakeLibvirt()
    vm = make_vm()
    MetadataClient(fake).store("dom1", vm)

    element = ET.fromstring(fake.calls[0][2].strip())
    assert element.tag == f"{{{METADATA_NAMESPACE}}}metadata"
    document = yaml.safe_load(element.text)
    assert document["metadata"]["name"] == vm.name
    assert document["spec"]["vcpus"] == vm.spec.vcpus


def test_store_keeps_markup_characters_intact():
    fake = FakeLibvirt()
    client = MetadataClient(fake)
    vm = make_vm(name="a&b<c>d")

    client.store("dom1", vm)

    assert client.load("dom1").name == "a&b<c>d"


def test_update_increments_generation():
    fake = FakeLibvirt()
    client = MetadataClient(fake)
    vm = make_vm()
    before = vm.generation

    client.update("dom1", vm)

    assert vm.generation == before + 1
    assert client.load("dom1").generation == before + 1


def test_delete_sends_empty_metadata_with_remove_flag():
    fake = FakeLibvirt()
    client = MetadataClient(fake)
    client.store("dom1", make_vm())

    client.delete("dom1")

    dom, typ, metadata, key, uri, flags = fake.calls[-1]
    assert (dom, typ, metadata, key, uri, flags) == (
        "dom1",
        DOMAIN_METADATA_ELEMENT,
        "",
        METADATA_KEY,
        METADATA_NAMESPACE,
        FLAGS_REMOVE,
    )
    assert client.exists("dom1") is False


def test_exists_reflects_stored_metadata():
    fake = FakeLibvirt()
    client = MetadataClient(fake)
    assert client.exists("dom1") is False

    client.store("dom1", make_vm())

    assert client.exists("dom1") is True
    assert client.exists("dom2") is False


def test_load_missing_metadata_raises():
    client = MetadataClient(FakeLibvirt())
    with pytest.raises(MetadataError, match="failed to get libvirt domain metadata"):
        client.load("dom1")


def test_load_invalid_xml_raises():
    fake = FakeLibvirt()
    fake.entries[("dom1", METADATA_NAMESPACE)] = "<metadata"
    with pytest.raises(MetadataError, match="failed to unmarshal metadata XML"):
        MetadataClient(fake).load("dom1")


def test_load_wrong_root_element_raises():
    fake = FakeLibvirt()
    fake.entries[("dom1", METADATA_NAMESPACE)] = "<other>name: x</other>"
    with pytest.raises(MetadataError, match="failed to unmarshal metadata XML"):
        MetadataClient(fake).load("dom1")


def test_load_invalid_yaml_raises():
    fake = FakeLibvirt()
    fake.entries[("dom1", METADATA_NAMESPACE)] = (
        f'<metadata xmlns="{METADATA_NAMESPACE}">{{invalid yaml content</metadata>'
    )
    with pytest.raises(MetadataError, match="failed to unmarshal VM spec from YAML"):
        MetadataClient(fake).load("dom1")


def test_store_failure_is_wrapped():
    fake = FakeLibvirt()
    fake.fail = True
    with pytest.raises(MetadataError, match="failed to set libvirt domain metadata"):
        MetadataClient(fake).store("dom1", make_vm())


def test_delete_failure_is_wrapped():
    fake = FakeLibvirt()
    fake.fail = True
    with pytest.raises(MetadataError, match="failed to delete libvirt domain metadata"):
        MetadataClient(fake).delete("dom1")