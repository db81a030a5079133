"""Resource types for the VirtualMachine API and their dict form."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

GROUP_NAME = "foundry.cofront.xyz"
VERSION = "v1alpha1"
API_VERSION = f"{GROUP_NAME}/{VERSION}"
VIRTUAL_MACHINE_KIND = "VirtualMachine"

CONDITION_READY = "Ready"
CONDITION_STORAGE_PROVISIONED = "StorageProvisioned"
CONDITION_NETWORK_CONFIGURED = "NetworkConfigured"
CONDITION_CLOUD_INIT_READY = "CloudInitReady"


class VMPhase(str, enum.Enum):
    """Lifecycle phase of a virtual machine."""

    PENDING = "Pending"
    CREATING = "Creating"
    RUNNING = "Running"
    STOPPING = "Stopping"
    STOPPED = "Stopped"
    FAILED = "Failed"

    def __str__(self) -> str:
        return self.value


class ConditionStatus(str, enum.Enum):
    """Status value of a condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


# --- value coercion helpers -------------------------------------------------


def _mapping(value: Any, where: str) -> Mapping:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, where: str) -> list:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{where}: expected a list, got {type(value).__name__}")
    return list(value)


def _int(value: Any, where: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{where}: expected an integer, got {value!r}")
    return value


def _str(value: Any, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"{where}: expected a string, got {value!r}")


def _bool(value: Any, where: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{where}: expected a boolean, got {value!r}")
    return value


def _str_list(value: Any, where: str) -> list[str]:
    return [_str(item, f"{where}[{i}]") for i, item in enumerate(_sequence(value, where))]


def _time(value: Any, where: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"{where}: invalid timestamp {value!r}") from exc
    else:
        raise ValueError(f"{where}: expected a timestamp, got {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _enum(enum_type: type[enum.Enum], value: Any, where: str) -> Any:
    try:
        return enum_type(_str(value, where))
    except ValueError as exc:
        raise ValueError(f"{where}: unknown value {value!r}") from exc


# --- resource types ---------------------------------------------------------


@dataclass
class Condition:
    """A single observed condition of a virtual machine."""

    type: str
    status: ConditionStatus
    observed_generation: int = 0
    last_transition_time: datetime | None = None
    reason: str = ""
    message: str = ""

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "status": self.status.value}
        if self.observed_generation:
            out["observedGeneration"] = self.observed_generation
        if self.last_transition_time is not None:
            out["lastTransitionTime"] = _format_time(self.last_transition_time)
        if self.reason:
            out["reason"] = self.reason
        if self.message:
            out["message"] = self.message
        return out

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> Condition:
        data = _mapping(data, where)
        return cls(
            type=_str(data.get("type"), f"{where}.type"),
            status=_enum(ConditionStatus, data.get("status"), f"{where}.status"),
            observed_generation=_int(data.get("observedGeneration"), f"{where}.observedGeneration"),
            last_transition_time=_time(data.get("lastTransitionTime"), f"{where}.lastTransitionTime"),
            reason=_str(data.get("reason"), f"{where}.reason"),
            message=_str(data.get("message"), f"{where}.message"),
        )


@dataclass
class VMAddress:
    """An address reported for a virtual machine."""

    type: str = ""
    address: str = ""

    def _to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "address": self.address}

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> VMAddress:
        data = _mapping(data, where)
        return cls(
            type=_str(data.get("type"), f"{where}.type"),
            address=_str(data.get("address"), f"{where}.address"),
        )


@dataclass
class BootDiskSpec:
    """Boot disk: either cloned from an image or created empty."""

    size_gb: int = 0
    image: str = ""
    empty: bool = False
    format: str = ""
    image_pool: str = ""

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"sizeGB": self.size_gb}
        if self.image:
            out["image"] = self.image
        if self.empty:
            out["empty"] = True
        if self.format:
            out["format"] = self.format
        if self.image_pool:
            out["imagePool"] = self.image_pool
        return out

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> BootDiskSpec:
        data = _mapping(data, where)
        return cls(
            size_gb=_int(data.get("sizeGB"), f"{where}.sizeGB"),
            image=_str(data.get("image"), f"{where}.image"),
            empty=_bool(data.get("empty"), f"{where}.empty"),
            format=_str(data.get("format"), f"{where}.format"),
            image_pool=_str(data.get("imagePool"), f"{where}.imagePool"),
        )


@dataclass
class DataDiskSpec:
    """An additional data disk attached to the VM."""

    device: str = ""
    size_gb: int = 0

    def _to_dict(self) -> dict[str, Any]:
        return {"device": self.device, "sizeGB": self.size_gb}

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> DataDiskSpec:
        data = _mapping(data, where)
        return cls(
            device=_str(data.get("device"), f"{where}.device"),
            size_gb=_int(data.get("sizeGB"), f"{where}.sizeGB"),
        )


@dataclass
class NetworkInterfaceSpec:
    """A bridged network interface with a static address."""

    ip: str = ""
    gateway: str = ""
    bridge: str = ""
    dns_servers: list[str] = field(default_factory=list)
    default_route: bool = False
    pxe_boot: bool = False

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"ip": self.ip, "gateway": self.gateway, "bridge": self.bridge}
        if self.dns_servers:
            out["dnsServers"] = list(self.dns_servers)
        if self.default_route:
            out["defaultRoute"] = True
        if self.pxe_boot:
            out["pxeBoot"] = True
        return out

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> NetworkInterfaceSpec:
        data = _mapping(data, where)
        return cls(
            ip=_str(data.get("ip"), f"{where}.ip"),
            gateway=_str(data.get("gateway"), f"{where}.gateway"),
            bridge=_str(data.get("bridge"), f"{where}.bridge"),
            dns_servers=_str_list(data.get("dnsServers"), f"{where}.dnsServers"),
            default_route=_bool(data.get("defaultRoute"), f"{where}.defaultRoute"),
            pxe_boot=_bool(data.get("pxeBoot"), f"{where}.pxeBoot"),
        )


@dataclass
class CloudInitSpec:
    """Cloud-init settings for the guest."""

    fqdn: str = ""
    ssh_authorized_keys: list[str] = field(default_factory=list)

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.fqdn:
            out["fqdn"] = self.fqdn
        if self.ssh_authorized_keys:
            out["sshAuthorizedKeys"] = list(self.ssh_authorized_keys)
        return out

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> CloudInitSpec:
        data = _mapping(data, where)
        return cls(
            fqdn=_str(data.get("fqdn"), f"{where}.fqdn"),
            ssh_authorized_keys=_str_list(data.get("sshAuthorizedKeys"), f"{where}.sshAuthorizedKeys"),
        )


@dataclass
class VirtualMachineSpec:
    """Desired configuration of a virtual machine."""

    vcpus: int = 0
    memory_gib: int = 0
    cpu_mode: str = ""
    storage_pool: str = ""
    boot_disk: BootDiskSpec = field(default_factory=BootDiskSpec)
    data_disks: list[DataDiskSpec] = field(default_factory=list)
    network_interfaces: list[NetworkInterfaceSpec] = field(default_factory=list)
    cloud_init: CloudInitSpec | None = None
    autostart: bool | None = None

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"vcpus": self.vcpus, "memoryGiB": self.memory_gib}
        if self.cpu_mode:
            out["cpuMode"] = self.cpu_mode
        if self.storage_pool:
            out["storagePool"] = self.storage_pool
        out["bootDisk"] = self.boot_disk._to_dict()
        if self.data_disks:
            out["dataDisks"] = [disk._to_dict() for disk in self.data_disks]
        out["networkInterfaces"] = [iface._to_dict() for iface in self.network_interfaces]
        if self.cloud_init is not None:
            out["cloudInit"] = self.cloud_init._to_dict()
        if self.autostart is not None:
            out["autostart"] = self.autostart
        return out

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> VirtualMachineSpec:
        data = _mapping(data, where)
        cloud_init = data.get("cloudInit")
        autostart = data.get("autostart")
        return cls(
            vcpus=_int(data.get("vcpus"), f"{where}.vcpus"),
            memory_gib=_int(data.get("memoryGiB"), f"{where}.memoryGiB"),
            cpu_mode=_str(data.get("cpuMode"), f"{where}.cpuMode"),
            storage_pool=_str(data.get("storagePool"), f"{where}.storagePool"),
            boot_disk=BootDiskSpec._from_dict(data.get("bootDisk"), f"{where}.bootDisk"),
            data_disks=[
                DataDiskSpec._from_dict(item, f"{where}.dataDisks[{i}]")
                for i, item in enumerate(_sequence(data.get("dataDisks"), f"{where}.dataDisks"))
            ],
            network_interfaces=[
                NetworkInterfaceSpec._from_dict(item, f"{where}.networkInterfaces[{i}]")
                for i, item in enumerate(
                    _sequence(data.get("networkInterfaces"), f"{where}.networkInterfaces")
                )
            ],
            cloud_init=None
            if cloud_init is None
            else CloudInitSpec._from_dict(cloud_init, f"{where}.cloudInit"),
            autostart=None if autostart is None else _bool(autostart, f"{where}.autostart"),
        )


@dataclass
class VirtualMachineStatus:
    """Observed state of a virtual machine."""

    phase: VMPhase | None = None
    conditions: list[Condition] = field(default_factory=list)
    addresses: list[VMAddress] = field(default_factory=list)
    observed_generation: int = 0

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.phase is not None:
            out["phase"] = self.phase.value
        if self.conditions:
            out["conditions"] = [cond._to_dict() for cond in self.conditions]
        if self.addresses:
            out["addresses"] = [addr._to_dict() for addr in self.addresses]
        if self.observed_generation:
            out["observedGeneration"] = self.observed_generation
        return out

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> VirtualMachineStatus:
        data = _mapping(data, where)
        phase = data.get("phase")
        return cls(
            phase=None if phase in (None, "") else _enum(VMPhase, phase, f"{where}.phase"),
            conditions=[
                Condition._from_dict(item, f"{where}.conditions[{i}]")
                for i, item in enumerate(_sequence(data.get("conditions"), f"{where}.conditions"))
            ],
            addresses=[
                VMAddress._from_dict(item, f"{where}.addresses[{i}]")
                for i, item in enumerate(_sequence(data.get("addresses"), f"{where}.addresses"))
            ],
            observed_generation=_int(data.get("observedGeneration"), f"{where}.observedGeneration"),
        )


@dataclass
class VirtualMachine:
    """A VirtualMachine resource: type and object metadata, spec and status."""

    name: str = ""
    api_version: str = ""
    kind: str = ""
    generation: int = 0
    creation_timestamp: datetime | None = None
    spec: VirtualMachineSpec = field(default_factory=VirtualMachineSpec)
    status: VirtualMachineStatus = field(default_factory=VirtualMachineStatus)

    def update_observed_generation(self) -> None:
        """Record the current generation as observed in the status."""
        self.status.observed_generation = self.generation

    def set_default_api_version(self) -> None:
        """Fill in apiVersion and kind where they are missing."""
        if not self.api_version:
            self.api_version = API_VERSION
        if not self.kind:
            self.kind = VIRTUAL_MACHINE_KIND

    def to_dict(self) -> dict[str, Any]:
        """Return the resource as plain data in its serialized field names."""
        metadata: dict[str, Any] = {"name": self.name}
        if self.generation:
            metadata["generation"] = self.generation
        if self.creation_timestamp is not None:
            metadata["creationTimestamp"] = _format_time(self.creation_timestamp)
        out: dict[str, Any] = {}
        if self.api_version:
            out["apiVersion"] = self.api_version
        if self.kind:
            out["kind"] = self.kind
        out["metadata"] = metadata
        out["spec"] = self.spec._to_dict()
        out["status"] = self.status._to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> VirtualMachine:
        """Build a resource from plain data; raise ValueError on malformed input."""
        data = _mapping(data, "document")
        metadata = _mapping(data.get("metadata"), "metadata")
        return cls(
            name=_str(metadata.get("name"), "metadata.name"),
            api_version=_str(data.get("apiVersion"), "apiVersion"),
            kind=_str(data.get("kind"), "kind"),
            generation=_int(metadata.get("generation"), "metadata.generation"),
            creation_timestamp=_time(metadata.get("creationTimestamp"), "metadata.creationTimestamp"),
            spec=VirtualMachineSpec._from_dict(data.get("spec"), "spec"),
            status=VirtualMachineStatus._from_dict(data.get("status"), "status"),
        )


def new_virtual_machine(name: str) -> VirtualMachine:
    """Create a VirtualMachine with type information set and phase Pending."""
    vm = VirtualMachine(name=name)
    vm.set_default_api_version()
    vm.status.phase = VMPhase.PENDING
    return vm