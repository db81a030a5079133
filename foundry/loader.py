"""Loading, validating and saving VirtualMachine resources as YAML."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from foundry.models import API_VERSION, VIRTUAL_MACHINE_KIND, VirtualMachine, VMPhase


class LoadError(ValueError):
    """Raised when a resource cannot be read, parsed, validated or written."""


def load_from_file(path: str | os.PathLike) -> VirtualMachine:
    """Load and validate a VirtualMachine from a YAML file."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise LoadError(f"failed to read file {path}: {exc}") from exc
    return load_from_yaml(data)


def load_from_yaml(data: str | bytes) -> VirtualMachine:
    """Load and validate a VirtualMachine from YAML text."""
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise LoadError(f"failed to unmarshal YAML: {exc}") from exc
    try:
        vm = VirtualMachine.from_dict(document)
    except ValueError as exc:
        raise LoadError(f"failed to unmarshal YAML: {exc}") from exc

    if not vm.api_version:
        raise LoadError("missing required field: apiVersion")
    if not vm.kind:
        raise LoadError("missing required field: kind")
    if vm.api_version != API_VERSION:
        raise LoadError(f"unsupported apiVersion: {vm.api_version} (expected: {API_VERSION})")
    if vm.kind != VIRTUAL_MACHINE_KIND:
        raise LoadError(f"unsupported kind: {vm.kind} (expected: {VIRTUAL_MACHINE_KIND})")

    apply_defaults(vm)
    try:
        validate_spec(vm)
    except LoadError as exc:
        raise LoadError(f"validation failed: {exc}") from exc
    return vm


def save_to_file(vm: VirtualMachine, path: str | os.PathLike) -> None:
    """Write the VirtualMachine to a YAML file, filling in type information."""
    vm.set_default_api_version()
    text = yaml.safe_dump(vm.to_dict(), sort_keys=False)
    try:
        Path(path).write_text(text, encoding="utf-8")
    except OSError as exc:
        raise LoadError(f"failed to write file {path}: {exc}") from exc


def apply_defaults(vm: VirtualMachine) -> None:
    """Fill in defaults for omitted fields and normalize names to lower case."""
    spec = vm.spec
    if not spec.cpu_mode:
        spec.cpu_mode = "host-model"
    if not spec.storage_pool:
        spec.storage_pool = "foundry-vms"
    if not spec.boot_disk.format:
        spec.boot_disk.format = "qcow2"
    if not spec.boot_disk.image_pool:
        spec.boot_disk.image_pool = "foundry-images"
    if spec.autostart is None:
        spec.autostart = True
    if vm.status.phase is None:
        vm.status.phase = VMPhase.PENDING

    vm.name = vm.name.lower()
    if spec.cloud_init is not None and spec.cloud_init.fqdn:
        spec.cloud_init.fqdn = spec.cloud_init.fqdn.lower()


def validate_spec(vm: VirtualMachine) -> None:
    """Check required fields and consistency; raise LoadError on the first problem."""
    spec = vm.spec
    if not vm.name:
        raise LoadError("metadata.name is required")
    if spec.vcpus <= 0:
        raise LoadError("spec.vcpus must be greater than 0")
    if spec.memory_gib <= 0:
        raise LoadError("spec.memoryGiB must be greater than 0")

    boot = spec.boot_disk
    if boot.size_gb <= 0:
        raise LoadError("spec.bootDisk.sizeGB must be greater than 0")
    if not boot.image and not boot.empty:
        raise LoadError("spec.bootDisk must specify either 'image' or 'empty: true'")
    if boot.image and boot.empty:
        raise LoadError("spec.bootDisk cannot specify both 'image' and 'empty: true'")

    devices_seen: set[str] = set()
    for i, disk in enumerate(spec.data_disks):
        if not disk.device:
            raise LoadError(f"spec.dataDisks[{i}].device is required")
        if disk.size_gb <= 0:
            raise LoadError(f"spec.dataDisks[{i}].sizeGB must be greater than 0")
        if disk.device in devices_seen:
            raise LoadError(f'spec.dataDisks[{i}].device "{disk.device}" is duplicated')
        devices_seen.add(disk.device)

    if not spec.network_interfaces:
        raise LoadError("spec.networkInterfaces must have at least one interface")

    ips_seen: set[str] = set()
    for i, iface in enumerate(spec.network_interfaces):
        if not iface.ip:
            raise LoadError(f"spec.networkInterfaces[{i}].ip is required")
        if not iface.gateway:
            raise LoadError(f"spec.networkInterfaces[{i}].gateway is required")
        if not iface.bridge:
            raise LoadError(f"spec.networkInterfaces[{i}].bridge is required")
        if iface.ip in ips_seen:
            raise LoadError(f'spec.networkInterfaces[{i}].ip "{iface.ip}" is duplicated')
        ips_seen.add(iface.ip)