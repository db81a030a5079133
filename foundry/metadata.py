"""Storage of VirtualMachine resources in libvirt domain metadata."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Protocol

import yaml

from foundry.models import VirtualMachine

METADATA_NAMESPACE = "http://foundry.cofront.xyz/v1alpha1"
METADATA_KEY = "foundry-vm-spec"

DOMAIN_METADATA_ELEMENT = 2
FLAGS_REPLACE = 0
FLAGS_REMOVE = 1


class MetadataError(RuntimeError):
    """Raised when metadata cannot be stored, read or removed."""


class _LibvirtMetadataAPI(Protocol):
    def domain_set_metadata(
        self, dom: Any, typ: int, metadata: str, key: str, uri: str, flags: int
    ) -> None: ...

    def domain_get_metadata(self, dom: Any, typ: int, uri: str, flags: int) -> str: ...


class MetadataClient:
    """Stores the full VirtualMachine as YAML inside a domain's custom metadata."""

    def __init__(self, client: _LibvirtMetadataAPI) -> None:
        self._client = client

    def store(self, domain: Any, vm: VirtualMachine) -> None:
        """Save the VM to the domain's metadata, replacing what was there."""
        try:
            spec_yaml = yaml.safe_dump(vm.to_dict(), sort_keys=False)
        except yaml.YAMLError as exc:
            raise MetadataError(f"failed to marshal VM spec to YAML: {exc}") from exc

        element = ET.Element("metadata", {"xmlns": METADATA_NAMESPACE})
        element.text = spec_yaml
        xml_text = "  " + ET.tostring(element, encoding="unicode")

        try:
            self._client.domain_set_metadata(
                domain,
                DOMAIN_METADATA_ELEMENT,
                xml_text,
                METADATA_KEY,
                METADATA_NAMESPACE,
                FLAGS_REPLACE,
            )
        except Exception as exc:
            raise MetadataError(f"failed to set libvirt domain metadata: {exc}") from exc

    def load(self, domain: Any) -> VirtualMachine:
        """Read the VM back from the domain's metadata."""
        try:
            xml_text = self._client.domain_get_metadata(
                domain, DOMAIN_METADATA_ELEMENT, METADATA_NAMESPACE, FLAGS_REPLACE
            )
        except Exception as exc:
            raise MetadataError(f"failed to get libvirt domain metadata: {exc}") from exc

        try:
            element = ET.fromstring(xml_text.strip())
        except ET.ParseError as exc:
            raise MetadataError(f"failed to unmarshal metadata XML: {exc}") from exc
        local_name = element.tag.rpartition("}")[2]
        if local_name != "metadata":
            raise MetadataError(
                f"failed to unmarshal metadata XML: expected element <metadata> but have <{local_name}>"
            )

        try:
            return VirtualMachine.from_dict(yaml.safe_load(element.text or ""))
        except (yaml.YAMLError, ValueError) as exc:
            raise MetadataError(f"failed to unmarshal VM spec from YAML: {exc}") from exc

    def update(self, domain: Any, vm: VirtualMachine) -> None:
        """Bump the VM's generation and store it again."""
        vm.generation += 1
        self.store(domain, vm)

    def delete(self, domain: Any) -> None:
        """Remove the stored metadata from the domain."""
        try:
            self._client.domain_set_metadata(
                domain,
                DOMAIN_METADATA_ELEMENT,
                "",
                METADATA_KEY,
                METADATA_NAMESPACE,
                FLAGS_REMOVE,
            )
        except Exception as exc:
            raise MetadataError(f"failed to delete libvirt domain metadata: {exc}") from exc

    def exists(self, domain: Any) -> bool:
        """Whether the domain carries stored metadata."""
        try:
            self._client.domain_get_metadata(
                domain, DOMAIN_METADATA_ELEMENT, METADATA_NAMESPACE, FLAGS_REPLACE
            )
        except Exception:
            return False
        return True