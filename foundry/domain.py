"""Generation of libvirt domain XML from VirtualMachine resources."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from foundry import naming
from foundry.models import VirtualMachine

BASE_STORAGE_PATH = "/var/lib/libvirt/images"
DEFAULT_STORAGE_POOL = "foundry-vms"
DEFAULT_CPU_MODE = "host-model"


class DomainXMLError(ValueError):
    """Raised when a domain definition cannot be generated."""


def get_storage_pool(vm: VirtualMachine) -> str:
    """Storage pool of the VM, falling back to the default pool."""
    return vm.spec.storage_pool or DEFAULT_STORAGE_POOL


def get_boot_volume_name(vm: VirtualMachine) -> str:
    """Volume name of the VM's boot disk."""
    return naming.volume_name_boot(vm.name)


def get_data_volume_name(vm: VirtualMachine, device: str) -> str:
    """Volume name of the VM's data disk on the given device."""
    return naming.volume_name_data(vm.name, device)


def get_cloud_init_volume_name(vm: VirtualMachine) -> str:
    """Volume name of the VM's cloud-init ISO."""
    return naming.volume_name_cloud_init(vm.name)


def _sub(parent: ET.Element, tag: str, text: str | None = None, **attrs: str) -> ET.Element:
    element = ET.SubElement(parent, tag, {key: str(value) for key, value in attrs.items()})
    if text is not None:
        element.text = text
    return element


def _volume_disk(
    devices: ET.Element,
    *,
    device: str,
    driver: dict[str, str],
    pool: str,
    volume: str,
    dev: str,
    bus: str,
    boot_order: int | None = None,
    readonly: bool = False,
) -> None:
    disk = _sub(devices, "disk", type="volume", device=device)
    _sub(disk, "driver", **driver)
    _sub(disk, "source", pool=pool, volume=volume)
    _sub(disk, "target", dev=dev, bus=bus)
    if boot_order is not None:
        _sub(disk, "boot", order=str(boot_order))
    if readonly:
        _sub(disk, "readonly")


def generate_domain_xml(vm: VirtualMachine) -> str:
    """Return the libvirt domain XML describing the VM."""
    spec = vm.spec
    pool = get_storage_pool(vm)

    domain = ET.Element("domain", {"type": "kvm"})
    _sub(domain, "name", vm.name)
    _sub(domain, "memory", str(spec.memory_gib), unit="GiB")
    _sub(domain, "vcpu", str(spec.vcpus), placement="static")

    os_elem = _sub(domain, "os", firmware="efi")
    _sub(os_elem, "type", "hvm", arch="x86_64")
    _sub(os_elem, "bios", useserial="yes")

    features = _sub(domain, "features")
    for name in ("pae", "acpi", "apic"):
        _sub(features, name)

    cpu = _sub(domain, "cpu", mode=spec.cpu_mode or DEFAULT_CPU_MODE)
    _sub(cpu, "model", fallback="allow")

    clock = _sub(domain, "clock", offset="utc")
    _sub(clock, "timer", name="rtc", tickpolicy="catchup")
    _sub(clock, "timer", name="pit", tickpolicy="delay")
    _sub(clock, "timer", name="hpet", present="no")

    _sub(domain, "on_poweroff", "destroy")
    _sub(domain, "on_reboot", "restart")
    _sub(domain, "on_crash", "restart")

    devices = _sub(domain, "devices")

    has_pxe_boot = any(iface.pxe_boot for iface in spec.network_interfaces)
    qcow2_driver = {"name": "qemu", "type": "qcow2", "cache": "none"}

    _volume_disk(
        devices,
        device="disk",
        driver=qcow2_driver,
        pool=pool,
        volume=get_boot_volume_name(vm),
        dev="vda",
        bus="virtio",
        boot_order=2 if has_pxe_boot else 1,
    )
    for data_disk in spec.data_disks:
        _volume_disk(
            devices,
            device="disk",
            driver=qcow2_driver,
            pool=pool,
            volume=get_data_volume_name(vm, data_disk.device),
            dev=data_disk.device,
            bus="virtio",
        )
    if spec.cloud_init is not None:
        _volume_disk(
            devices,
            device="cdrom",
            driver={"name": "qemu", "type": "raw"},
            pool=pool,
            volume=get_cloud_init_volume_name(vm),
            dev="sda",
            bus="sata",
            readonly=True,
        )

    _sub(devices, "controller", type="pci", index="0", model="pci-root")

    for iface in spec.network_interfaces:
        try:
            mac = naming.mac_from_ip(iface.ip)
        except ValueError as exc:
            raise DomainXMLError(f"failed to calculate MAC address for {iface.ip}: {exc}") from exc
        try:
            tap_name = naming.interface_name_from_ip(iface.ip)
        except ValueError as exc:
            raise DomainXMLError(
                f"failed to calculate interface name for {iface.ip}: {exc}"
            ) from exc

        interface = _sub(devices, "interface", type="bridge")
        _sub(interface, "mac", address=mac)
        _sub(interface, "source", bridge=iface.bridge)
        _sub(interface, "target", dev=tap_name)
        _sub(interface, "model", type="virtio")
        if iface.pxe_boot:
            _sub(interface, "boot", order="1")

    serial = _sub(devices, "serial", type="pty")
    _sub(serial, "target", port="0")
    console = _sub(devices, "console", type="pty")
    _sub(console, "target", type="serial", port="0")

    _sub(devices, "memballoon", model="virtio")
    rng = _sub(devices, "rng", model="virtio")
    _sub(rng, "backend", "/dev/urandom", model="random")

    ET.indent(domain, space="  ")
    return ET.tostring(domain, encoding="unicode")